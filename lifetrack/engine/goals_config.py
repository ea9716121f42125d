"""Static goal-key registry. Config only.

Each GoalDefinition ties a goal key to the way its rate of progress is
estimated and to where its current value lives in the metric tree.
"""

from __future__ import annotations

from dataclasses import dataclass

from lifetrack.engine.models import GoalMetrics


@dataclass(frozen=True, slots=True)
class GoalDefinition:
    key: str
    rate_kind: str  # "cumulative" | "counting" | "longitudinal" | "none"
    metric: str | None = None  # formula library metric name, when one applies
    measurement_field: str | None = None  # health-metric field for longitudinal goals
    label: str = ""


GOALS_BY_KEY: dict[str, GoalDefinition] = {
    # Cumulative physical challenge: latest attempt total, rate from first vs latest attempt
    "strength_challenge": GoalDefinition(
        key="strength_challenge",
        rate_kind="cumulative",
        metric="strength_total",
        label="400 challenge",
    ),
    # Simple counting: rate = count so far / days observed
    "new_contacts": GoalDefinition(
        key="new_contacts",
        rate_kind="counting",
        metric="new_friends",
        label="New contacts made",
    ),
    # Longitudinal capacity score, tracked by the trajectory tracker
    "vo2max": GoalDefinition(
        key="vo2max",
        rate_kind="longitudinal",
        measurement_field="vo2max",
        label="VO2 max",
    ),
}


def get_goal_definition(key: str) -> GoalDefinition | None:
    return GOALS_BY_KEY.get(key)


def list_goal_definitions() -> list[GoalDefinition]:
    return list(GOALS_BY_KEY.values())


def current_value_from_metrics(key: str, metrics: GoalMetrics) -> float | None:
    """Current value of a known goal key read off the metric tree."""
    if key == "strength_challenge":
        return metrics.health.strength.total
    if key == "new_contacts":
        return float(metrics.social.new_connections.phone_numbers.count)
    return None
