"""Relative date-window filtering of log entries."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from enum import Enum
from typing import Sequence
from zoneinfo import ZoneInfo

from lifetrack.config import settings
from lifetrack.engine.ingest import coerce_date
from lifetrack.engine.values import LogEntry


class TimeWindow(str, Enum):
    all = "all"
    days_7 = "7days"
    days_30 = "30days"
    days_90 = "90days"
    days_365 = "365days"


WINDOW_DAYS: dict[TimeWindow, int] = {
    TimeWindow.days_7: 7,
    TimeWindow.days_30: 30,
    TimeWindow.days_90: 90,
    TimeWindow.days_365: 365,
}


def parse_window(value: str | TimeWindow | None) -> TimeWindow:
    """Unknown or empty window strings fall back to the unbounded window."""
    if isinstance(value, TimeWindow):
        return value
    try:
        return TimeWindow(value)
    except ValueError:
        return TimeWindow.all


def window_start(window: TimeWindow | str, now: datetime) -> datetime | None:
    """Local midnight of `today - N days` in DEFAULT_TZ. None for the `all` window."""
    days = WINDOW_DAYS.get(parse_window(window))
    if days is None:
        return None
    tz = ZoneInfo(settings.default_tz)
    local_now = now.astimezone(tz) if now.tzinfo is not None else now.replace(tzinfo=tz)
    start_day = local_now.date() - timedelta(days=days)
    return datetime.combine(start_day, time.min, tzinfo=tz)


def filter_entries(
    entries: Sequence[LogEntry],
    window: TimeWindow | str,
    now: datetime,
) -> list[LogEntry]:
    """Keep entries on or after the window start.

    The `all` window returns the input unchanged. Entries whose date can't be
    coerced are dropped for bounded windows.
    """
    now = coerce_date(now) or now
    start = window_start(window, now)
    if start is None:
        return list(entries)

    kept: list[LogEntry] = []
    for entry in entries:
        entry_date = coerce_date(getattr(entry, "date", None))
        if entry_date is not None and entry_date >= start:
            kept.append(entry)
    return kept
