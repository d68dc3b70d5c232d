"""Remaining-time arithmetic."""

from __future__ import annotations

import math
from datetime import datetime

from tminus.models import Decomposition

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


def remaining_seconds(target: datetime, reference: datetime) -> int:
    """Whole seconds from reference until target, never below zero.

    Once the deadline has passed the countdown holds at zero.
    """
    delta = (target - reference).total_seconds()
    return max(0, math.floor(delta))


def decompose(total: int) -> Decomposition:
    """Split a second count into days, hours, minutes and seconds."""
    total = max(0, int(total))
    days, rest = divmod(total, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)
    return Decomposition(days=days, hours=hours, minutes=minutes, seconds=seconds)


def format_unit(value: int) -> str:
    """Zero-pad to two digits. Larger values (e.g. 365 days) keep all digits."""
    return f"{value:02d}"


def unit_strings(d: Decomposition) -> tuple[str, str, str, str]:
    return (
        format_unit(d.days),
        format_unit(d.hours),
        format_unit(d.minutes),
        format_unit(d.seconds),
    )
