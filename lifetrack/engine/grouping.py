"""Bucket log entries by calendar period and evaluate a metric per bucket."""

from __future__ import annotations

from typing import Callable, Sequence

from lifetrack.config import settings
from lifetrack.engine import formulas
from lifetrack.engine.models import Granularity, TrendPoint, TrendSeries
from lifetrack.engine.values import LogEntry


def _day_key(entry: LogEntry) -> str:
    return entry.date.strftime("%Y-%m-%d")


def _week_key(entry: LogEntry) -> str:
    year, week, _ = entry.date.isocalendar()
    return f"{year}-W{week:02d}"


def _month_key(entry: LogEntry) -> str:
    return f"{entry.date.year:04d}-{entry.date.month:02d}"


_GROUP_KEYS: dict[Granularity, Callable[[LogEntry], str]] = {
    Granularity.day: _day_key,
    Granularity.week: _week_key,
    Granularity.month: _month_key,
}


def group_by(
    entries: Sequence[LogEntry],
    metric_name: str,
    granularity: Granularity | str = Granularity.month,
) -> list[TrendPoint]:
    """One TrendPoint per period, ascending by period string.

    Always pass the full, unfiltered collection: trend views ignore the
    dashboard's time window.
    """
    key_fn = _GROUP_KEYS[Granularity(granularity)]
    buckets: dict[str, list[LogEntry]] = {}
    for entry in entries:
        if entry.date is None:
            continue
        buckets.setdefault(key_fn(entry), []).append(entry)

    return [
        TrendPoint(period=period, value=formulas.compute(metric_name, group), count=len(group))
        for period, group in sorted(buckets.items())
    ]


def group_monthly(entries: Sequence[LogEntry], metric_name: str) -> list[TrendPoint]:
    return group_by(entries, metric_name, Granularity.month)


def has_sufficient_history(points: Sequence[TrendPoint], min_periods: int | None = None) -> bool:
    """Fewer than `min_periods` periods means the series isn't worth charting."""
    threshold = settings.trends_min_periods if min_periods is None else min_periods
    return len(points) >= threshold


def trend_series(
    entries: Sequence[LogEntry],
    metric_name: str,
    granularity: Granularity | str = Granularity.month,
) -> TrendSeries:
    points = group_by(entries, metric_name, granularity)
    return TrendSeries(
        metric=metric_name,
        granularity=Granularity(granularity),
        points=points,
        sufficient=has_sufficient_history(points),
    )
