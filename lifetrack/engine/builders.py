"""Dashboard builder, the engine's single entry point.

Takes an explicit GoalEngineContext (entries, health metrics, goals, targets,
now), runs every component, returns a DashboardReport.
Graceful degradation: missing data never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from lifetrack.engine import aggregator, grouping, projection, trajectory
from lifetrack.engine.goals_config import get_goal_definition
from lifetrack.engine.ingest import coerce_date, parse_health_metrics, parse_log_entries
from lifetrack.engine.models import (
    DashboardReport,
    EnginePayload,
    Evidence,
    Goal,
    GoalTargets,
    Granularity,
    Trajectory,
    TrendSeries,
)
from lifetrack.engine.values import HealthMetricEntry, LogEntry
from lifetrack.engine.windows import TimeWindow, filter_entries, parse_window

logger = logging.getLogger(__name__)

# Metrics charted on the trends view by default.
DEFAULT_TREND_METRICS: tuple[str, ...] = (
    "family_contact",
    "friend_contact",
    "meditation",
    "morning_journal",
    "evening_journal",
    "strength_total",
    "sleep_on_time",
    "code",
)


@dataclass(frozen=True)
class GoalEngineContext:
    entries: Sequence[LogEntry] = field(default_factory=tuple)
    health_metrics: Sequence[HealthMetricEntry] = field(default_factory=tuple)
    goals: Sequence[Goal] = field(default_factory=tuple)
    targets: GoalTargets = field(default_factory=GoalTargets)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def context_from_payload(payload: EnginePayload) -> GoalEngineContext:
    """Parse a raw request payload into a context. `now` defaults to the wall clock."""
    now = coerce_date(payload.now) if payload.now is not None else None
    return GoalEngineContext(
        entries=tuple(parse_log_entries(payload.entries)),
        health_metrics=tuple(parse_health_metrics(payload.health_metrics)),
        goals=tuple(payload.goals),
        targets=payload.targets,
        now=now or datetime.now(timezone.utc),
    )


def build_trends(
    ctx: GoalEngineContext,
    metrics: Sequence[str] = DEFAULT_TREND_METRICS,
    granularity: Granularity | str = Granularity.month,
) -> dict[str, TrendSeries]:
    return {m: grouping.trend_series(ctx.entries, m, granularity) for m in metrics}


def _is_longitudinal(goal: Goal) -> bool:
    definition = get_goal_definition(goal.key)
    return definition is not None and definition.rate_kind == "longitudinal"


def projectable_goals(goals: Sequence[Goal]) -> list[Goal]:
    """Goals projected by rate. Longitudinal goals get a trajectory instead."""
    return [g for g in goals if not _is_longitudinal(g)]


def build_trajectory(ctx: GoalEngineContext) -> Trajectory | None:
    """Trajectory of the first dated longitudinal goal in the context, if any."""
    for goal in ctx.goals:
        if goal.is_rolling or not _is_longitudinal(goal):
            continue
        definition = get_goal_definition(goal.key)
        return trajectory.track_goal(
            goal, ctx.health_metrics, ctx.now, field=definition.measurement_field or goal.key
        )
    return None


def _evidence(ctx: GoalEngineContext, in_window: int) -> Evidence:
    dates = [e.date for e in ctx.entries]
    return Evidence(
        entries=len(ctx.entries),
        entries_in_window=in_window,
        health_metrics=len(ctx.health_metrics),
        earliest=min(dates) if dates else None,
        latest=max(dates) if dates else None,
    )


def build_dashboard(
    ctx: GoalEngineContext,
    window: TimeWindow | str = TimeWindow.all,
    granularity: Granularity | str = Granularity.month,
) -> DashboardReport:
    window = parse_window(window)
    warnings: list[str] = []

    metrics = aggregator.compute_goal_metrics(
        ctx.entries, ctx.targets, window, ctx.now, ctx.health_metrics
    )
    if not ctx.entries:
        warnings.append("No log entries supplied.")
    elif metrics.days_in_period == 0:
        warnings.append(f"No log entries in the selected window ({window.value}).")

    trends = build_trends(ctx, granularity=granularity)
    if ctx.entries and not any(series.sufficient for series in trends.values()):
        warnings.append("Not enough history for trend charts.")

    history = filter_entries(ctx.entries, window, ctx.now)
    projections = projection.project_goals(projectable_goals(ctx.goals), history, ctx.now, metrics)

    traj = build_trajectory(ctx)

    logger.info(
        "Dashboard built: window=%s entries=%d goals=%d warnings=%d",
        window.value, len(ctx.entries), len(ctx.goals), len(warnings),
    )

    return DashboardReport(
        generated_at=ctx.now,
        window=window.value,
        metrics=metrics,
        trends=trends,
        projections=projections,
        trajectory=traj,
        evidence=_evidence(ctx, metrics.days_in_period),
        warnings=warnings,
    )
