from __future__ import annotations

import math
import re

_DURATION_PATTERN = re.compile(
    r"^(?:(?P<days>\d+)-)?(?:(?P<hours>\d+):)?(?P<minutes>\d+):(?P<seconds>\d+(?:\.\d+)?)$"
)


def parse_duration_to_seconds(value: str) -> float:
    """Parse a Slurm duration such as ``12:34``, ``01:02:03`` or ``2-03:00:00``.

    Slurm omits leading components that are zero, so ``squeue``'s TimeUsed
    column may read ``0:05`` for a job that started five seconds ago.  The
    ``days-hours`` form always carries an hour component.
    """

    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Unrecognised duration: '{value}'")

    days = int(match.group("days") or 0)
    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes"))
    seconds = float(match.group("seconds"))

    if match.group("days") is not None and match.group("hours") is None:
        raise ValueError(f"Unrecognised duration: '{value}'")
    if match.group("hours") is not None and minutes >= 60:
        raise ValueError(f"Unrecognised duration: '{value}'")
    if seconds >= 60:
        raise ValueError(f"Unrecognised duration: '{value}'")

    return ((days * 24 + hours) * 60 + minutes) * 60 + seconds


def parse_interval(value: str) -> float:
    """Parse a polling interval given in seconds or as a Slurm duration."""

    raw = value.strip()
    try:
        seconds = float(raw)
    except ValueError:
        seconds = parse_duration_to_seconds(raw)
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"Interval must be a finite number greater than zero: '{value}'")
    return seconds
