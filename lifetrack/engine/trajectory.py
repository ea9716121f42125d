"""Linear trajectory tracking for a single longitudinal capacity metric (VO2 max).

Expected value today lies on the straight line from the initial value at goal
creation to the target value at the target date.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Sequence

from lifetrack.config import settings
from lifetrack.engine.ingest import coerce_date
from lifetrack.engine.models import Goal, Trajectory, TrajectoryPoint
from lifetrack.engine.values import HealthMetricEntry

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


def _whole_days(start: datetime, end: datetime) -> int:
    return max(0, round((end - start).total_seconds() / SECONDS_PER_DAY))


def _finite_or(value: float, fallback: float) -> float:
    return value if math.isfinite(value) else fallback


def _qualifying(measurements: Sequence[HealthMetricEntry], field: str) -> list[HealthMetricEntry]:
    hits = [m for m in measurements if m.get(field) is not None and math.isfinite(m.get(field))]
    return sorted(hits, key=lambda m: m.date)


def latest_measurement(measurements: Sequence[HealthMetricEntry], field: str) -> float | None:
    """Most recent value of `field`, None if it was never measured."""
    hits = _qualifying(measurements, field)
    return hits[-1].get(field) if hits else None


def infer_initial_value(
    measurements: Sequence[HealthMetricEntry],
    field: str,
    target_value: float,
    created_at: datetime | None = None,
) -> float:
    """Earliest qualifying measurement, else a fixed fraction of the target.

    When `created_at` is given, measurements taken on or before it are
    preferred so the baseline reflects the value when the goal was set.
    """
    hits = _qualifying(measurements, field)
    if created_at is not None:
        created = coerce_date(created_at) or created_at
        before = [m for m in hits if m.date <= created]
        if before:
            return before[0].get(field)
    if hits:
        return hits[0].get(field)
    return target_value * settings.trajectory_initial_fallback_ratio


def track(
    initial_value: float,
    current_value: float,
    target_value: float,
    start_date: datetime,
    end_date: datetime,
    now: datetime,
) -> Trajectory:
    """Expected-vs-actual position on the linear path and a projected final value."""
    start_date = coerce_date(start_date) or start_date
    end_date = coerce_date(end_date) or end_date
    now = coerce_date(now) or now

    total_days = _whole_days(start_date, end_date)
    elapsed_days = _whole_days(start_date, now)
    span = target_value - initial_value
    midpoint = initial_value + span * 0.5

    if total_days > 0:
        fraction = min(1.0, max(0.0, elapsed_days / total_days))
        expected_today = _finite_or(initial_value + span * fraction, midpoint)
    else:
        logger.info("Zero-length trajectory window; using midpoint as expected value")
        fraction = 0.0
        expected_today = midpoint

    is_on_track = current_value >= expected_today - settings.trajectory_on_track_tolerance

    if elapsed_days > 0:
        improvement_rate = (current_value - initial_value) / elapsed_days
        projected_final = _finite_or(initial_value + improvement_rate * total_days, target_value)
    else:
        projected_final = initial_value

    return Trajectory(
        initial_value=initial_value,
        current_value=current_value,
        target_value=target_value,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        elapsed_days=elapsed_days,
        percent_complete=fraction * 100.0,
        expected_today=expected_today,
        difference=abs(current_value - expected_today),
        is_on_track=is_on_track,
        projected_final=projected_final,
        points=[
            TrajectoryPoint(label="start", date=start_date, expected=initial_value),
            TrajectoryPoint(label="today", date=now, expected=expected_today, actual=current_value),
            TrajectoryPoint(label="target", date=end_date, expected=target_value, projected=projected_final),
        ],
    )


def track_goal(
    goal: Goal,
    measurements: Sequence[HealthMetricEntry],
    now: datetime,
    field: str = "vo2max",
) -> Trajectory | None:
    """Trajectory for a dated goal, filling initial/current values from measurements.

    Rolling goals have no end date and therefore no trajectory.
    """
    if goal.is_rolling:
        return None

    now = coerce_date(now) or now
    start = coerce_date(goal.created_at) if goal.created_at is not None else None
    if start is None:
        first = _qualifying(measurements, field)
        start = first[0].date if first else now
    end = coerce_date(goal.target_date) or goal.target_date
    if end < start:
        logger.warning("Goal %s targets a date before its creation; clamping", goal.key)
        end = start

    initial = goal.initial_value
    if initial is None:
        initial = infer_initial_value(measurements, field, goal.target_value, start)

    current = latest_measurement(measurements, field)
    if current is None:
        current = goal.current_value if goal.current_value is not None else initial

    return track(initial, current, goal.target_value, start, end, now)
