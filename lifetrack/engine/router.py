"""Engine HTTP router. The host posts already-fetched user data and gets results back."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from lifetrack.auth import verify_api_key
from lifetrack.engine import aggregator, builders, formulas, grouping, projection, trajectory
from lifetrack.engine.models import (
    DashboardReport,
    EnginePayload,
    GoalMetrics,
    Granularity,
    Projection,
    Trajectory,
    TrendSeries,
)
from lifetrack.engine.windows import TimeWindow, filter_entries

router = APIRouter(prefix="/engine", tags=["engine"])


# ---------------------------------------------------------------------------
# /engine/metrics
# ---------------------------------------------------------------------------


@router.get("/metrics/catalog")
async def metrics_catalog(
    _: str = Depends(verify_api_key),
) -> list[dict]:
    return [
        {"name": f.name, "kind": f.kind, "field": f.field, "label": f.label}
        for f in formulas.METRIC_FORMULAS.values()
    ]


@router.post("/metrics", response_model=GoalMetrics)
async def post_metrics(
    payload: EnginePayload,
    _: str = Depends(verify_api_key),
    window: TimeWindow = Query(default=TimeWindow.all, description="all | 7days | 30days | 90days | 365days"),
) -> GoalMetrics:
    ctx = builders.context_from_payload(payload)
    return aggregator.compute_goal_metrics(ctx.entries, ctx.targets, window, ctx.now, ctx.health_metrics)


# ---------------------------------------------------------------------------
# /engine/trends/{metric}
# ---------------------------------------------------------------------------


@router.post("/trends/{metric}", response_model=TrendSeries)
async def post_trend(
    metric: str,
    payload: EnginePayload,
    _: str = Depends(verify_api_key),
    granularity: Granularity = Query(default=Granularity.month),
) -> TrendSeries:
    if formulas.get_formula(metric) is None:
        raise HTTPException(status_code=404, detail=f"Unknown metric: {metric}")
    ctx = builders.context_from_payload(payload)
    return grouping.trend_series(ctx.entries, metric, granularity)


# ---------------------------------------------------------------------------
# /engine/projections, /engine/trajectory
# ---------------------------------------------------------------------------


@router.post("/projections", response_model=list[Projection])
async def post_projections(
    payload: EnginePayload,
    _: str = Depends(verify_api_key),
    window: TimeWindow = Query(default=TimeWindow.all),
) -> list[Projection]:
    ctx = builders.context_from_payload(payload)
    metrics = aggregator.compute_goal_metrics(ctx.entries, ctx.targets, window, ctx.now, ctx.health_metrics)
    history = filter_entries(ctx.entries, window, ctx.now)
    return projection.project_goals(builders.projectable_goals(ctx.goals), history, ctx.now, metrics)


@router.post("/trajectory", response_model=Trajectory)
async def post_trajectory(
    payload: EnginePayload,
    _: str = Depends(verify_api_key),
    goal_key: str = Query(default="vo2max", description="Goal to track"),
    field: str = Query(default="vo2max", description="Health-metric field holding the measurement"),
) -> Trajectory:
    ctx = builders.context_from_payload(payload)
    goal = next((g for g in ctx.goals if g.key == goal_key), None)
    if goal is None:
        raise HTTPException(status_code=404, detail=f"No goal with key: {goal_key}")
    result = trajectory.track_goal(goal, ctx.health_metrics, ctx.now, field=field)
    if result is None:
        raise HTTPException(status_code=422, detail=f"Goal {goal_key} is rolling and has no trajectory")
    return result


# ---------------------------------------------------------------------------
# /engine/dashboard
# ---------------------------------------------------------------------------


@router.post("/dashboard", response_model=DashboardReport)
async def post_dashboard(
    payload: EnginePayload,
    _: str = Depends(verify_api_key),
    window: TimeWindow = Query(default=TimeWindow.all),
    granularity: Granularity = Query(default=Granularity.month),
) -> DashboardReport:
    ctx = builders.context_from_payload(payload)
    return builders.build_dashboard(ctx, window, granularity)
