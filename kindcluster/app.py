"""Command line front matter: early detection of the quiet flag."""

from __future__ import annotations

from collections import deque
from contextlib import suppress
from typing import Iterable

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class _StopParsing(Exception):
    pass


class _QuietScanner:
    """Scans arguments for -q/--quiet, tolerating unknown flags."""

    def __init__(self, args: Iterable[str]) -> None:
        self.pending = deque(args)
        self.quiet = False

    def run(self) -> bool:
        with suppress(_StopParsing):
            while self.pending:
                arg = self.pending.popleft()
                if arg == "--":
                    break
                if len(arg) < 2 or not arg.startswith("-"):
                    continue
                if arg.startswith("--"):
                    self._long(arg[2:])
                else:
                    self._short(arg[1:])
        return self.quiet

    def _set(self, value: str) -> None:
        if value in _TRUE:
            self.quiet = True
        elif value in _FALSE:
            self.quiet = False
        else:
            raise _StopParsing

    def _strip_unknown_value(self) -> None:
        if self.pending and not self.pending[0].startswith("-"):
            self.pending.popleft()

    def _long(self, body: str) -> None:
        if body[0] in "-=":
            raise _StopParsing
        name, eq, value = body.partition("=")
        if name == "quiet":
            self._set(value if eq else "true")
        elif name == "help":
            raise _StopParsing
        elif not eq:
            self._strip_unknown_value()

    def _short(self, shorthands: str) -> None:
        while shorthands:
            flag = shorthands[0]
            has_value = len(shorthands) > 2 and shorthands[1] == "="
            if flag == "q":
                if has_value:
                    self._set(shorthands[2:])
                    return
                self._set("true")
            elif flag == "h":
                raise _StopParsing
            else:
                if has_value:
                    return
                self._strip_unknown_value()
            shorthands = shorthands[1:]


def check_quiet(args: Iterable[str]) -> bool:
    """Return whether -q / --quiet is set in args; other flags are ignored."""
    return _QuietScanner(args).run()