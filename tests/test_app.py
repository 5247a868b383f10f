import pytest

from kindcluster.app import check_quiet


@pytest.mark.parametrize(
    "args, expect_quiet",
    [
        (["-q"], True),
        (["--quiet"], True),
        (["all", "quiet", "on", "the", "cli", "--quiet"], True),
        (["--quiet", "--help"], True),
        (["--quiet", "-h"], True),
        ([], False),
        (["--loud"], False),
    ],
    ids=[
        "simply q",
        "simply quiet",
        "all quiet on the cli",
        "with ignored help",
        "with ignored h",
        "no args",
        "loud",
    ],
)
def test_check_quiet(args, expect_quiet):
    assert check_quiet(args) is expect_quiet


def test_explicit_false_value():
    assert check_quiet(["--quiet=false"]) is False
    assert check_quiet(["-q=false"]) is False


def test_combined_short_flags():
    assert check_quiet(["-vq"]) is True


def test_flags_after_terminator_are_ignored():
    assert check_quiet(["--", "--quiet"]) is False


def test_help_stops_scanning():
    assert check_quiet(["--help", "--quiet"]) is False


def test_unknown_flag_consumes_its_value():
    assert check_quiet(["--name", "kind", "-q"]) is True
    assert check_quiet(["--name", "-q"]) is True


def test_invalid_bool_value_stops_scanning():
    assert check_quiet(["--quiet=maybe", "-q"]) is False