"""Goal projection: rate of progress, completion date and on-track status.

Pure: every call is a function of (goal, current value, history, now).
Non-finite intermediate results are replaced with safe fallbacks.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Sequence

from lifetrack.config import settings
from lifetrack.engine import formulas
from lifetrack.engine.goals_config import current_value_from_metrics, get_goal_definition
from lifetrack.engine.ingest import coerce_date
from lifetrack.engine.models import Goal, GoalMetrics, Projection
from lifetrack.engine.values import LogEntry

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


def days_between(a: datetime, b: datetime) -> int:
    """Absolute whole days between two instants, rounded up."""
    return math.ceil(abs((b - a).total_seconds()) / SECONDS_PER_DAY)


def progress_percentage(current_value: float, target_value: float) -> float:
    """current / target * 100, uncapped. A zero target counts as met unless current is negative."""
    if target_value == 0:
        return 100.0 if current_value >= 0 else 0.0
    result = current_value / target_value * 100.0
    return result if math.isfinite(result) else 0.0


# ---------------------------------------------------------------------------
# Rate of progress
# ---------------------------------------------------------------------------

def cumulative_challenge_rate(history: Sequence[LogEntry], flag_field: str, parts: Sequence[str]) -> float:
    """(latest total - first total) / days between the first and latest attempts."""
    attempts = formulas.qualifying_entries(history, flag_field)
    if len(attempts) < 2:
        return 0.0
    first, latest = attempts[0], attempts[-1]
    span_days = (latest.date - first.date).total_seconds() / SECONDS_PER_DAY
    if span_days <= 0:
        return 0.0
    return (formulas.cumulative_total(latest, parts) - formulas.cumulative_total(first, parts)) / span_days


def days_observed(history: Sequence[LogEntry]) -> int:
    """Distinct calendar days present in the history."""
    return len({e.date.date() for e in history if e.date is not None})


def counting_rate(current_value: float, history: Sequence[LogEntry]) -> float:
    observed = days_observed(history)
    if observed == 0:
        return 0.0
    return current_value / observed


def rate_of_progress(goal: Goal, current_value: float, history: Sequence[LogEntry]) -> float:
    """Metric-specific rate in target units per day. Unknown goal keys get 0."""
    definition = get_goal_definition(goal.key)
    if definition is None:
        return 0.0
    if definition.rate_kind == "cumulative":
        formula = formulas.get_formula(definition.metric or "")
        if formula is None:
            return 0.0
        return cumulative_challenge_rate(history, formula.field, formula.parts)
    if definition.rate_kind == "counting":
        return counting_rate(current_value, history)
    return 0.0


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def _completion_date(now: datetime, days: float) -> datetime | None:
    """now + ceil(days), or None when that lies past datetime.max."""
    if not math.isfinite(days):
        return None
    days = max(0, math.ceil(days))
    if days > (datetime.max.replace(tzinfo=now.tzinfo) - now).days:
        return None
    try:
        return now + timedelta(days=days)
    except OverflowError:
        return None


def _status(is_on_track: bool, current_value: float, target_value: float) -> str:
    if current_value >= target_value:
        return "achieved"
    return "on_track" if is_on_track else "behind"


def project(
    goal: Goal,
    current_value: float,
    history: Sequence[LogEntry],
    now: datetime,
) -> Projection:
    """Project whether `goal` will be met by its target date."""
    target_value = goal.target_value
    pct = progress_percentage(current_value, target_value)

    if goal.is_rolling:
        return Projection(
            goal_key=goal.key,
            category=goal.category,
            current_value=current_value,
            target_value=target_value,
            progress_percentage=pct,
            is_rolling=True,
            status="rolling",
        )

    now = coerce_date(now) or now
    target_date = coerce_date(goal.target_date) or goal.target_date
    days_until = days_between(now, target_date)
    remaining = target_value - current_value

    rate = rate_of_progress(goal, current_value, history)
    if not math.isfinite(rate):
        logger.info("Non-finite rate for goal %s; treating as no progress", goal.key)
        rate = 0.0

    projected: datetime | None = None
    needed: float | None = None
    if rate > 0:
        projected = _completion_date(now, remaining / rate)
        if projected is None:
            logger.info("Goal %s completes beyond the representable calendar", goal.key)
        on_track = projected is not None and projected <= target_date
    else:
        needed = remaining / days_until if days_until > 0 else remaining
        on_track = needed <= settings.projection_needed_rate_tolerance or current_value >= target_value

    return Projection(
        goal_key=goal.key,
        category=goal.category,
        current_value=current_value,
        target_value=target_value,
        progress_percentage=pct,
        days_until_target=days_until,
        rate_of_progress=rate,
        needed_rate=needed,
        projected_completion_date=projected,
        is_on_track=on_track,
        status=_status(on_track, current_value, target_value),
    )


def resolve_current_value(goal: Goal, metrics: GoalMetrics | None) -> float:
    """Goal's own current value, else the metric tree's value for its key, else 0."""
    if goal.current_value is not None:
        return goal.current_value
    if metrics is not None:
        value = current_value_from_metrics(goal.key, metrics)
        if value is not None:
            return value
    return 0.0


def project_goals(
    goals: Sequence[Goal],
    history: Sequence[LogEntry],
    now: datetime,
    metrics: GoalMetrics | None = None,
) -> list[Projection]:
    return [project(g, resolve_current_value(g, metrics), history, now) for g in goals]
