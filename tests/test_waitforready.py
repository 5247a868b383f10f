import time
from datetime import timedelta

from kindcluster.waitforready import (
    format_duration,
    statuses_ready,
    try_until,
    waiting_message,
)


def test_format_zero():
    assert format_duration(0) == "0s"


def test_format_minutes():
    assert format_duration(90) == "1m30s"


def test_format_hours():
    assert format_duration(3600) == "1h0m0s"


def test_format_rounds_half_up():
    assert format_duration(1.5) == format_duration(2)
    assert format_duration(1.4) == format_duration(1)


def test_format_accepts_timedelta():
    assert format_duration(timedelta(seconds=90)) == format_duration(90)


def test_format_negative_is_signed():
    assert format_duration(-90) == "-" + format_duration(90)


def test_waiting_message():
    assert waiting_message(60) == f"Waiting ≤ {format_duration(60)} for control-plane = Ready ⏳"


def test_try_until_succeeds_after_retries():
    calls = []

    def attempt():
        calls.append(1)
        return len(calls) == 3

    assert try_until(time.monotonic() + 60, attempt) is True
    assert len(calls) == 3


def test_try_until_expired_deadline_never_calls():
    calls = []

    def attempt():
        calls.append(1)
        return True

    assert try_until(time.monotonic() - 1, attempt) is False
    assert calls == []


def test_try_until_times_out():
    assert try_until(time.monotonic() + 0.05, lambda: False) is False


def test_statuses_all_true():
    assert statuses_ready("'True True True'") is True


def test_statuses_one_not_ready():
    assert statuses_ready("'True False True'") is False


def test_statuses_unknown():
    assert statuses_ready("Unknown") is False