"""Activity window: whether an allocation counts as current at a given date.

Activity is never stored. It is a pure function of (end_date, today), so a
record moves from CURRENT to PAST by the passage of time alone.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from allocation_engine.types import ActivityState, Allocation

logger = logging.getLogger(__name__)

Clock = Callable[[], date]
"""Zero-argument callable returning the evaluation date."""


def parse_date(value: str) -> date | None:
    """Parse a YYYY-MM-DD string. Returns None when it does not parse."""
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def is_active(end_date: str, today: date) -> bool:
    """True if an allocation ending on end_date is active on today.

    The range is inclusive: an allocation ending today is still active.
    Unparseable end dates are treated as active so a real commitment is
    never hidden by bad data.
    """
    end = parse_date(end_date)
    if end is None:
        logger.debug("Unparseable end date %r treated as active", end_date)
        return True
    return end >= today


def activity_state(allocation: Allocation, today: date) -> ActivityState:
    if is_active(allocation.end_date, today):
        return ActivityState.CURRENT
    return ActivityState.PAST


def yesterday(today: date) -> str:
    """End date that takes an allocation out of the active set as of today."""
    return (today - timedelta(days=1)).isoformat()


def start_sort_key(allocation: Allocation) -> tuple[int, date]:
    """Sort key by start date ascending; unparseable start dates sort last."""
    start = parse_date(allocation.start_date)
    if start is None:
        return (1, date.max)
    return (0, start)
