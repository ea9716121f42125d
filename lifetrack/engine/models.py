"""Engine result and request contracts (Pydantic v2 models).

Every result model is fully defaulted so an empty period still renders.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from lifetrack.config import settings

ROLLING = "rolling"


class Granularity(str, Enum):
    day = "day"
    week = "week"
    month = "month"


# ---------------------------------------------------------------------------
# Goal targets (the user's configured frequencies and percentages)
# ---------------------------------------------------------------------------

class SocialTargets(BaseModel):
    family_contact_days_per_week: float = Field(default_factory=lambda: settings.goals_family_contact_days_per_week)
    friend_contact_days_per_week: float = Field(default_factory=lambda: settings.goals_friend_contact_days_per_week)
    kat_smile_percentage: float = Field(default_factory=lambda: settings.goals_kat_smile_percentage)
    kat_reviews_per_month: float = Field(default_factory=lambda: settings.goals_kat_reviews_per_month)
    new_phone_numbers_target: float = Field(default_factory=lambda: settings.goals_new_phone_numbers_target)
    new_hangouts_target: float = Field(default_factory=lambda: settings.goals_new_hangouts_target)


class WellbeingTargets(BaseModel):
    journaling_percentage: float = Field(default_factory=lambda: settings.goals_journaling_percentage)
    meditation_percentage: float = Field(default_factory=lambda: settings.goals_meditation_percentage)
    epic_activities_per_month: float = Field(default_factory=lambda: settings.goals_epic_activities_per_month)


class HealthTargets(BaseModel):
    strength_challenge_target: float = Field(default_factory=lambda: settings.goals_strength_challenge_target)
    sleep_on_time_percentage: float = Field(default_factory=lambda: settings.goals_sleep_on_time_percentage)


class ProductivityTargets(BaseModel):
    language_days_percentage: float = Field(default_factory=lambda: settings.goals_language_days_percentage)
    math_days_percentage: float = Field(default_factory=lambda: settings.goals_math_days_percentage)
    code_days_percentage: float = Field(default_factory=lambda: settings.goals_code_days_percentage)
    lessons_per_month: float = Field(default_factory=lambda: settings.goals_lessons_per_month)


class GoalTargets(BaseModel):
    social: SocialTargets = Field(default_factory=SocialTargets)
    wellbeing: WellbeingTargets = Field(default_factory=WellbeingTargets)
    health: HealthTargets = Field(default_factory=HealthTargets)
    productivity: ProductivityTargets = Field(default_factory=ProductivityTargets)


# ---------------------------------------------------------------------------
# Metric results
# ---------------------------------------------------------------------------

class RateTargetMetric(BaseModel):
    rate: float = 0.0
    days_count: int = 0
    target: float = 0.0
    progress: float = 0.0


class RateProgressMetric(BaseModel):
    rate: float = 0.0
    progress: float = 0.0


class RateMetric(BaseModel):
    rate: float = 0.0


class CountMetric(BaseModel):
    count: int = 0
    target: float = 0.0
    progress: float = 0.0


class KatMetrics(BaseModel):
    smile: RateProgressMetric = Field(default_factory=RateProgressMetric)
    review: CountMetric = Field(default_factory=CountMetric)


class NewConnectionsMetrics(BaseModel):
    phone_numbers: CountMetric = Field(default_factory=CountMetric)
    hangouts: CountMetric = Field(default_factory=CountMetric)


class SocialMetrics(BaseModel):
    family: RateTargetMetric = Field(default_factory=RateTargetMetric)
    friends: RateTargetMetric = Field(default_factory=RateTargetMetric)
    kat: KatMetrics = Field(default_factory=KatMetrics)
    new_connections: NewConnectionsMetrics = Field(default_factory=NewConnectionsMetrics)


class JournalingMetric(BaseModel):
    morning_rate: float = 0.0
    evening_rate: float = 0.0
    both_rate: float = 0.0
    total_rate: float = 0.0
    progress: float = 0.0


class MeditationMetric(BaseModel):
    rate: float = 0.0
    days_count: int = 0
    progress: float = 0.0


class WellbeingMetrics(BaseModel):
    journaling: JournalingMetric = Field(default_factory=JournalingMetric)
    meditation: MeditationMetric = Field(default_factory=MeditationMetric)
    epic: CountMetric = Field(default_factory=CountMetric)
    mood: float = 0.0
    energy: float = 0.0


class StrengthMetric(BaseModel):
    total: float = 0.0
    pushups: float = 0.0
    rows: float = 0.0
    situps: float = 0.0
    squats: float = 0.0
    progress: float = 0.0


class SleepMetrics(BaseModel):
    bed_on_time: RateProgressMetric = Field(default_factory=RateProgressMetric)
    up_on_time: RateMetric = Field(default_factory=RateMetric)
    overall: RateMetric = Field(default_factory=RateMetric)


class CardioMetrics(BaseModel):
    sessions: int = 0
    total_minutes: float = 0.0
    avg_heart_rate: float = 0.0
    weekly_load: float = 0.0
    source: Literal["health_metrics", "logs", "none"] = "none"


class HealthDomainMetrics(BaseModel):
    strength: StrengthMetric = Field(default_factory=StrengthMetric)
    sleep: SleepMetrics = Field(default_factory=SleepMetrics)
    cardio: CardioMetrics = Field(default_factory=CardioMetrics)


class ProductivityMetrics(BaseModel):
    language: RateProgressMetric = Field(default_factory=RateProgressMetric)
    math: RateProgressMetric = Field(default_factory=RateProgressMetric)
    code: RateProgressMetric = Field(default_factory=RateProgressMetric)
    lessons: CountMetric = Field(default_factory=CountMetric)


class OverviewScores(BaseModel):
    """Mean sub-metric progress per domain (radar chart input)."""

    social: float = 0.0
    wellbeing: float = 0.0
    health: float = 0.0
    productivity: float = 0.0


class GoalMetrics(BaseModel):
    window: str = "all"
    days_in_period: int = 0
    social: SocialMetrics = Field(default_factory=SocialMetrics)
    wellbeing: WellbeingMetrics = Field(default_factory=WellbeingMetrics)
    health: HealthDomainMetrics = Field(default_factory=HealthDomainMetrics)
    productivity: ProductivityMetrics = Field(default_factory=ProductivityMetrics)
    overview: OverviewScores = Field(default_factory=OverviewScores)


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

class TrendPoint(BaseModel):
    period: str
    value: float = 0.0
    count: int = 0


class TrendSeries(BaseModel):
    metric: str
    granularity: Granularity = Granularity.month
    points: list[TrendPoint] = Field(default_factory=list)
    sufficient: bool = False  # at least trends_min_periods periods


# ---------------------------------------------------------------------------
# Goals, projections, trajectory
# ---------------------------------------------------------------------------

class Goal(BaseModel):
    category: str = ""
    key: str
    target_value: float
    target_date: datetime | None = None  # None means rolling / no deadline
    created_at: datetime | None = None
    initial_value: float | None = None
    current_value: float | None = None

    @field_validator("target_date", mode="before")
    @classmethod
    def _rolling_sentinel(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and v.strip().lower() in ("", ROLLING)):
            return None
        return v

    @property
    def is_rolling(self) -> bool:
        return self.target_date is None


class Projection(BaseModel):
    goal_key: str = ""
    category: str = ""
    current_value: float = 0.0
    target_value: float = 0.0
    progress_percentage: float = 0.0
    is_rolling: bool = False
    days_until_target: int | None = None
    rate_of_progress: float | None = None
    needed_rate: float | None = None
    projected_completion_date: datetime | None = None
    is_on_track: bool | None = None
    status: str = "behind"  # "achieved" | "on_track" | "behind" | "rolling"


class TrajectoryPoint(BaseModel):
    label: str  # "start" | "today" | "target"
    date: datetime
    expected: float
    actual: float | None = None
    projected: float | None = None


class Trajectory(BaseModel):
    initial_value: float
    current_value: float
    target_value: float
    start_date: datetime
    end_date: datetime
    total_days: int = 0
    elapsed_days: int = 0
    percent_complete: float = 0.0
    expected_today: float = 0.0
    difference: float = 0.0
    is_on_track: bool = False
    projected_final: float = 0.0
    points: list[TrajectoryPoint] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request payload & dashboard envelope
# ---------------------------------------------------------------------------

class EnginePayload(BaseModel):
    """Everything the host has already fetched for one user."""

    entries: list[dict[str, Any]] = Field(default_factory=list)
    health_metrics: list[dict[str, Any]] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    targets: GoalTargets = Field(default_factory=GoalTargets)
    now: datetime | None = None


class Evidence(BaseModel):
    entries: int = 0
    entries_in_window: int = 0
    health_metrics: int = 0
    earliest: datetime | None = None
    latest: datetime | None = None


class DashboardReport(BaseModel):
    generated_at: datetime
    window: str = "all"
    metrics: GoalMetrics = Field(default_factory=GoalMetrics)
    trends: dict[str, TrendSeries] = Field(default_factory=dict)
    projections: list[Projection] = Field(default_factory=list)
    trajectory: Trajectory | None = None
    evidence: Evidence = Field(default_factory=Evidence)
    warnings: list[str] = Field(default_factory=list)
