"""Next-run computation for daily / weekly / monthly / once schedules.

Run times are wall-clock ``HH:MM`` in the configured timezone; every
timestamp returned is an aware UTC datetime.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, time, timedelta, timezone
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from trackgen.schemas.models import Schedule, ScheduleFrequency

if TYPE_CHECKING:
    from trackgen.store.base import GenerationStore

logger = logging.getLogger(__name__)

DEFAULT_RUN_TIME = "09:00"
_RUN_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_run_time(value: str | None) -> time:
    """Parse ``HH:MM`` (24h). Raises ValueError on malformed input."""
    match = _RUN_TIME_RE.match((value or DEFAULT_RUN_TIME).strip())
    if not match:
        raise ValueError(f"Run time must be HH:MM, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Run time out of range: {value!r}")
    return time(hours, minutes)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _step(frequency: ScheduleFrequency, interval_days: int) -> relativedelta:
    if frequency == ScheduleFrequency.DAILY:
        return relativedelta(days=interval_days)
    if frequency == ScheduleFrequency.WEEKLY:
        return relativedelta(days=7)
    return relativedelta(months=1)


def compute_next_run(
    frequency: ScheduleFrequency | str,
    run_time: str | None = DEFAULT_RUN_TIME,
    interval_days: int | None = None,
    now: datetime | None = None,
    tz: str = "UTC",
) -> datetime | None:
    """Return the next run strictly after ``now``, or None for ``once``.

    The date always advances by the full interval (1+ days, 7 days, or one
    calendar month with month-end clamping) before the clock is set to
    ``run_time``, so a schedule never fires twice on the same day.
    """
    frequency = ScheduleFrequency(frequency)
    if frequency == ScheduleFrequency.ONCE:
        return None

    zone = ZoneInfo(tz)
    now_utc = _as_utc(now or datetime.now(timezone.utc))
    at = parse_run_time(run_time)
    days = interval_days if interval_days and interval_days > 0 else 1
    step = _step(frequency, days)

    local_now = now_utc.astimezone(zone)
    target_date = (local_now + step).date()
    candidate = datetime.combine(target_date, at, tzinfo=zone).astimezone(timezone.utc)
    # DST folds can land a candidate on or before now; push whole steps forward
    while candidate <= now_utc:
        target_date = target_date + step
        candidate = datetime.combine(target_date, at, tzinfo=zone).astimezone(timezone.utc)
    return candidate


def initial_next_run(
    frequency: ScheduleFrequency | str,
    run_time: str | None = DEFAULT_RUN_TIME,
    interval_days: int | None = None,
    now: datetime | None = None,
    tz: str = "UTC",
) -> datetime:
    """First next_run for a new schedule that was created without one.

    Recurring schedules start one interval out. A ``once`` schedule fires at
    the next occurrence of its run time: today if still ahead, else tomorrow.
    """
    frequency = ScheduleFrequency(frequency)
    if frequency != ScheduleFrequency.ONCE:
        return compute_next_run(frequency, run_time, interval_days, now=now, tz=tz)

    zone = ZoneInfo(tz)
    now_utc = _as_utc(now or datetime.now(timezone.utc))
    local_now = now_utc.astimezone(zone)
    at = parse_run_time(run_time)
    candidate = datetime.combine(local_now.date(), at, tzinfo=zone).astimezone(timezone.utc)
    if candidate <= now_utc:
        candidate = datetime.combine(
            local_now.date() + timedelta(days=1), at, tzinfo=zone
        ).astimezone(timezone.utc)
    return candidate


def find_due(store: GenerationStore, now: datetime | None = None) -> list[Schedule]:
    """Active schedules whose next_run is at or before ``now`` (point-in-time snapshot)."""
    now_utc = _as_utc(now or datetime.now(timezone.utc))
    due = store.find_due_schedules(now_utc)
    logger.debug("Found %d due schedule(s) at %s", len(due), now_utc.isoformat())
    return due
