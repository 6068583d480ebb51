"""Decode timer settings: entry validation and start/stop scheduling."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

SECONDS_PER_DAY = 86400
MAX_HOURS = 23
MAX_MINUTES = 59

__all__ = [
    "TimerError",
    "AutoTimerSchedule",
    "validate_hours",
    "validate_minutes",
    "decode_timer_seconds",
    "auto_timer_schedule",
    "format_center_freq",
]

_LEADING_DIGITS = re.compile(r"\d*")


class TimerError(ValueError):
    """Raised for invalid timer entries or an impossible schedule."""


@dataclass(frozen=True)
class AutoTimerSchedule:
    """Seconds to wait before starting, and how long to decode once started."""

    sleep_seconds: int
    decode_seconds: int


def _validate_entry(text: str, maximum: int) -> int:
    # Only the first two characters are checked for digits, as a two-digit
    # entry field would hold; the value itself comes from the leading digits.
    if not all("0" <= char <= "9" for char in text[:2]):
        raise TimerError("Non-numeric entry")
    digits = _LEADING_DIGITS.match(text).group()
    value = int(digits) if digits else 0
    if not 0 <= value <= maximum:
        raise TimerError("Value out of range")
    return value


def validate_hours(text: str) -> int:
    """Parse an hours entry, raising ``TimerError`` unless it is 0..23."""
    return _validate_entry(text, MAX_HOURS)


def validate_minutes(text: str) -> int:
    """Parse a minutes entry, raising ``TimerError`` unless it is 0..59."""
    return _validate_entry(text, MAX_MINUTES)


def decode_timer_seconds(minutes: int) -> int:
    """Decode timer length in seconds for a setting in minutes."""
    return 60 * int(minutes)


def _seconds_since_midnight(now: datetime | None) -> int:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.hour * 3600 + now.minute * 60 + now.second


def auto_timer_schedule(
    start_hrs: int,
    start_min: int,
    stop_hrs: int,
    stop_min: int,
    now: datetime | None = None,
) -> AutoTimerSchedule:
    """Work out the wait and decode durations for a UTC start/stop time pair.

    Times earlier than ``now`` are taken to be on the next day. A naive
    ``now`` is read as UTC. Raises ``TimerError`` if the stop time does not
    fall after the start time.
    """
    time_sec = _seconds_since_midnight(now)

    start_sec = start_hrs * 3600 + start_min * 60
    if start_sec < time_sec:
        start_sec += SECONDS_PER_DAY
    sleep_sec = start_sec - time_sec

    stop_sec = stop_hrs * 3600 + stop_min * 60
    if stop_sec < time_sec:
        stop_sec += SECONDS_PER_DAY
    stop_sec -= time_sec

    if stop_sec <= sleep_sec:
        raise TimerError("Stop time ahead of Start time")

    return AutoTimerSchedule(sleep_seconds=sleep_sec, decode_seconds=stop_sec - sleep_sec)


def format_center_freq(freq: int) -> str:
    """Centre frequency in Hz as the kHz text shown in the frequency entry."""
    return f"{freq / 1000.0:8.1f}"[:11]