"""Work-day and work-hour evaluation against a journal policy."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import settings
from ..models.domain import JournalPolicy

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _zone(name: str) -> Optional[tzinfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, evaluating timestamps as given")
        return None


def to_local(ts: datetime, tz_name: str | None = None) -> datetime:
    """Convert an aware timestamp to the configured local timezone; naive ones are already local."""
    if ts.tzinfo is None:
        return ts
    zone = _zone(tz_name or settings.timezone)
    return ts.astimezone(zone) if zone else ts


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Parse "HH:MM" into minutes after midnight, None when missing or malformed."""
    if not value or not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def weekday_index(ts: datetime) -> int:
    """Sunday = 0 ... Saturday = 6."""
    return ts.isoweekday() % 7


def is_work_day(ts: datetime, policy: JournalPolicy, tz_name: str | None = None) -> bool:
    if policy.work_days is None:
        return True
    return weekday_index(to_local(ts, tz_name)) in policy.work_days


def is_work_hours(ts: datetime, policy: JournalPolicy, tz_name: str | None = None) -> bool:
    start = parse_hhmm(policy.work_hours_start)
    end = parse_hhmm(policy.work_hours_end)
    if start is None or end is None:
        return True
    local = to_local(ts, tz_name)
    minute_of_day = local.hour * 60 + local.minute
    return start <= minute_of_day <= end


def is_work_time(ts: datetime, policy: JournalPolicy, tz_name: str | None = None) -> bool:
    return is_work_day(ts, policy, tz_name) and is_work_hours(ts, policy, tz_name)
