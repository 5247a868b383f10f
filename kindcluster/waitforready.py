"""Helpers for waiting until the control plane reports Ready."""

from __future__ import annotations

import time
from datetime import timedelta
from fractions import Fraction
from typing import Callable


def format_duration(seconds: float | timedelta) -> str:
    """Round to whole seconds (halves away from zero) and format like "1h2m3s"."""
    if isinstance(seconds, timedelta):
        seconds = seconds.total_seconds()
    exact = Fraction(seconds)
    sign = "-" if exact < 0 else ""
    total = int(abs(exact) + Fraction(1, 2))
    if total == 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def try_until(until: float, attempt: Callable[[], bool]) -> bool:
    """Call attempt until it returns True or the time.monotonic() deadline passes."""
    while until > time.monotonic():
        if attempt():
            return True
    return False


def statuses_ready(line: str) -> bool:
    """Return whether every node status in a kubectl jsonpath line is True."""
    return all("True" in status for status in line.split())


def waiting_message(wait_time: float | timedelta) -> str:
    """Return the status message shown while waiting for readiness."""
    return f"Waiting ≤ {format_duration(wait_time)} for control-plane = Ready ⏳"