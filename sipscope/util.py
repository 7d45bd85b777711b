"""General helpers: time formatting, string trimming and exit-signal tracking."""

from __future__ import annotations

import signal
import threading
import time
from dataclasses import dataclass

_C_WHITESPACE = " \t\n\v\f\r"
_USEC_PER_SEC = 1_000_000

_sigterm_event = threading.Event()


@dataclass(frozen=True)
class Timeval:
    """A point in time split into whole seconds and microseconds."""

    sec: int = 0
    usec: int = 0

    @property
    def total_usec(self) -> int:
        return self.sec * _USEC_PER_SEC + self.usec


def _trunc_divmod(value: int, divisor: int) -> tuple[int, int]:
    """Integer division truncating toward zero, with the matching remainder."""
    quotient = abs(value) // divisor
    if value < 0:
        quotient = -quotient
    return quotient, value - quotient * divisor


def basename(name: str) -> str:
    """Return the part of a path after its last slash."""
    return name.rsplit("/", 1)[-1]


def timeval_is_older(t1: Timeval, t2: Timeval) -> bool:
    """Return True if t1 is at or after t2."""
    return t2.total_usec - t1.total_usec <= 0


def timeval_to_date(tv: Timeval) -> str:
    """Format a timeval as a local yyyy/mm/dd date."""
    return time.strftime("%Y/%m/%d", time.localtime(tv.sec))


def timeval_to_time(tv: Timeval) -> str:
    """Format a timeval as a local HH:MM:SS.uuuuuu time."""
    return time.strftime("%H:%M:%S", time.localtime(tv.sec)) + f".{tv.usec:06d}"


def timeval_to_duration(start: Timeval, end: Timeval) -> str | None:
    """Return the difference in whole seconds as m:ss, right aligned to 7 chars.

    Returns None when either timeval has no seconds set.
    """
    if not start.sec or not end.sec:
        return None
    minutes, seconds = _trunc_divmod(end.sec - start.sec, 60)
    return f"{minutes}:{seconds:02d}".rjust(7)


def timeval_to_delta(start: Timeval, end: Timeval) -> str | None:
    """Return the signed difference as [+-]s.uuuuuu.

    Returns None when either timeval has no seconds set.
    """
    if not start.sec or not end.sec:
        return None
    diff = end.total_usec - start.total_usec
    nsec, rest = _trunc_divmod(diff, _USEC_PER_SEC)
    sign = "+" if diff >= 0 else "-"
    return f"{sign}{abs(nsec)}.{abs(rest):06d}"


def strtrim(text: str) -> str:
    """Return the text without trailing whitespace."""
    return text.rstrip(_C_WHITESPACE)


def _sigterm_handler(signum, frame) -> None:
    _sigterm_event.set()


def setup_sigterm_handler() -> None:
    """Install handlers that record termination signals.

    SIGTERM, SIGINT, SIGQUIT and SIGCONT (where the platform has them) only
    set a flag that can be checked with was_sigterm_received().
    """
    for name in ("SIGTERM", "SIGINT", "SIGQUIT", "SIGCONT"):
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, _sigterm_handler)


def was_sigterm_received() -> bool:
    """Return True once any of the exit signals has been received."""
    return _sigterm_event.is_set()