"""Goal metrics: the fixed social / wellbeing / health / productivity tree.

Composes the window filter and the formula library. Graceful degradation:
an empty period returns the zero-valued default of every sub-metric.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Sequence

from lifetrack.config import settings
from lifetrack.engine import formulas
from lifetrack.engine.ingest import coerce_date
from lifetrack.engine.models import (
    CardioMetrics,
    CountMetric,
    GoalMetrics,
    GoalTargets,
    HealthDomainMetrics,
    JournalingMetric,
    KatMetrics,
    MeditationMetric,
    NewConnectionsMetrics,
    OverviewScores,
    ProductivityMetrics,
    RateMetric,
    RateProgressMetric,
    RateTargetMetric,
    SleepMetrics,
    SocialMetrics,
    StrengthMetric,
    WellbeingMetrics,
)
from lifetrack.engine.values import HealthMetricEntry, LogEntry
from lifetrack.engine.windows import TimeWindow, filter_entries, parse_window, window_start

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7.0
DAYS_PER_MONTH = 30.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def scaled_target(goal_value: float, days_in_period: int, period_unit: float) -> float:
    """Scale a per-week / per-month goal to the length of the period."""
    if period_unit <= 0:
        return 0.0
    return goal_value * (days_in_period / period_unit)


def progress_pct(observed: float, target: float) -> float:
    """observed / target * 100, clamped at 0 from below. 0 when target is 0."""
    if target <= 0:
        return 0.0
    return max(0.0, observed / target * 100.0)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------

def _rate_vs_weekly_goal(entries: Sequence[LogEntry], field: str, per_week: float) -> RateTargetMetric:
    days = len(entries)
    if days == 0:
        return RateTargetMetric()
    count = formulas.count_flag(entries, field)
    target = scaled_target(per_week, days, DAYS_PER_WEEK)
    return RateTargetMetric(
        rate=formulas.rate(count, days),
        days_count=count,
        target=target,
        progress=progress_pct(count, target),
    )


def _rate_vs_percentage_goal(entries: Sequence[LogEntry], field: str, percentage: float) -> RateProgressMetric:
    if not entries:
        return RateProgressMetric()
    observed = formulas.binary_rate(entries, field)
    return RateProgressMetric(rate=observed, progress=progress_pct(observed, percentage))


def _count_vs_monthly_goal(entries: Sequence[LogEntry], field: str, per_month: float) -> CountMetric:
    days = len(entries)
    if days == 0:
        return CountMetric()
    count = formulas.count_flag(entries, field)
    target = scaled_target(per_month, days, DAYS_PER_MONTH)
    return CountMetric(count=count, target=target, progress=progress_pct(count, target))


def _is_new_people_hangout(entry: LogEntry) -> bool:
    if formulas.is_tolerant_yes(entry, "new_friends"):
        return True
    vibes = entry.number("vibes")
    return entry.is_yes("epic_activity") and vibes is not None and vibes >= 3


def compute_social(entries: Sequence[LogEntry], targets: GoalTargets) -> SocialMetrics:
    goals = targets.social
    if not entries:
        return SocialMetrics()

    phone_count = formulas.count_tolerant(entries, "new_friends")
    hangout_count = sum(1 for e in entries if _is_new_people_hangout(e))

    return SocialMetrics(
        family=_rate_vs_weekly_goal(entries, "talk_fam", goals.family_contact_days_per_week),
        friends=_rate_vs_weekly_goal(entries, "talk_old_friend", goals.friend_contact_days_per_week),
        kat=KatMetrics(
            smile=_rate_vs_percentage_goal(entries, "kat_smile", goals.kat_smile_percentage),
            review=_count_vs_monthly_goal(entries, "kat_review", goals.kat_reviews_per_month),
        ),
        new_connections=NewConnectionsMetrics(
            phone_numbers=CountMetric(
                count=phone_count,
                target=goals.new_phone_numbers_target,
                progress=progress_pct(phone_count, goals.new_phone_numbers_target),
            ),
            hangouts=CountMetric(
                count=hangout_count,
                target=goals.new_hangouts_target,
                progress=progress_pct(hangout_count, goals.new_hangouts_target),
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Wellbeing
# ---------------------------------------------------------------------------

def compute_wellbeing(entries: Sequence[LogEntry], targets: GoalTargets) -> WellbeingMetrics:
    goals = targets.wellbeing
    days = len(entries)
    if days == 0:
        return WellbeingMetrics()

    morning = formulas.count_flag(entries, "morning_journal")
    evening = formulas.count_flag(entries, "evening_journal")
    both = sum(1 for e in entries if e.is_yes("morning_journal") and e.is_yes("evening_journal"))
    total_rate = formulas.rate(morning + evening, days * 2)

    meditation_days = formulas.count_flag(entries, "meditation")
    meditation_rate = formulas.rate(meditation_days, days)

    return WellbeingMetrics(
        journaling=JournalingMetric(
            morning_rate=formulas.rate(morning, days),
            evening_rate=formulas.rate(evening, days),
            both_rate=formulas.rate(both, days),
            total_rate=total_rate,
            progress=progress_pct(total_rate, goals.journaling_percentage),
        ),
        meditation=MeditationMetric(
            rate=meditation_rate,
            days_count=meditation_days,
            progress=progress_pct(meditation_rate, goals.meditation_percentage),
        ),
        epic=_count_vs_monthly_goal(entries, "epic_activity", goals.epic_activities_per_month),
        mood=formulas.average_of_present(entries, "mood"),
        energy=formulas.average_of_present(entries, "energy"),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def compute_strength(entries: Sequence[LogEntry], target: float) -> StrengthMetric:
    """400-challenge breakdown from the most recent attempt in the period."""
    attempts = formulas.qualifying_entries(entries, "strength")
    if not attempts:
        return StrengthMetric()
    latest = attempts[-1]
    parts = {p: latest.number_or_zero(p) for p in formulas.STRENGTH_PARTS}
    total = sum(parts.values())
    return StrengthMetric(total=total, progress=progress_pct(total, target), **parts)


def compute_sleep(entries: Sequence[LogEntry], targets: GoalTargets) -> SleepMetrics:
    days = len(entries)
    if days == 0:
        return SleepMetrics()
    bed = formulas.count_flag(entries, "bed_on_time")
    up = formulas.count_flag(entries, "up_on_time")
    bed_rate = formulas.rate(bed, days)
    return SleepMetrics(
        bed_on_time=RateProgressMetric(
            rate=bed_rate,
            progress=progress_pct(bed_rate, targets.health.sleep_on_time_percentage),
        ),
        up_on_time=RateMetric(rate=formulas.rate(up, days)),
        overall=RateMetric(rate=formulas.rate(bed + up, days * 2)),
    )


def training_load(duration_min: float | None, heart_rate: float | None) -> float:
    """Synthetic cardio load: minutes * bpm / 100, with default inputs when absent."""
    duration = duration_min if duration_min is not None else settings.cardio_default_duration_min
    hr = heart_rate if heart_rate is not None else settings.cardio_default_heart_rate
    return duration * hr / 100.0


def _first_present(metric: HealthMetricEntry, names: Sequence[str]) -> float | None:
    for name in names:
        value = metric.get(name)
        if value is not None:
            return value
    return None


_DURATION_KEYS = ("exerciseData.duration", "duration")
_HEART_RATE_KEYS = ("exerciseData.heartRate", "heartRate")


def _sessions_from_health_metrics(
    metrics: Sequence[HealthMetricEntry],
) -> list[tuple[datetime, float | None, float | None]]:
    sessions = []
    for m in metrics:
        duration = _first_present(m, _DURATION_KEYS)
        hr = _first_present(m, _HEART_RATE_KEYS)
        if duration is None and hr is None:
            continue
        sessions.append((m.date, duration, hr))
    return sessions


def _sessions_from_logs(entries: Sequence[LogEntry]) -> list[tuple[datetime, float | None, float | None]]:
    return [
        (e.date, e.number("cardio_minutes"), e.number("cardio_hr"))
        for e in entries
        if formulas.is_tolerant_yes(e, "cardio")
    ]


def compute_cardio_metrics(
    entries: Sequence[LogEntry],
    health_metrics: Sequence[HealthMetricEntry] | None,
    now: datetime,
    prefer_health_metrics: bool = True,
) -> CardioMetrics:
    """Cardio sessions and trailing weekly training load.

    Health measurements win when preferred and they hold exercise sessions;
    otherwise log entries are the source.
    """
    source = "logs"
    sessions = []
    if prefer_health_metrics and health_metrics:
        sessions = _sessions_from_health_metrics(health_metrics)
        if sessions:
            source = "health_metrics"
    if not sessions:
        sessions = _sessions_from_logs(entries)

    if not sessions:
        return CardioMetrics(source=source if (entries or health_metrics) else "none")

    now = coerce_date(now) or now
    load_cutoff = now - timedelta(days=settings.cardio_load_window_days)
    durations = [
        d if d is not None else settings.cardio_default_duration_min for _, d, _ in sessions
    ]
    heart_rates = [hr for _, _, hr in sessions if hr is not None]
    weekly_load = sum(
        training_load(d, hr) for when, d, hr in sessions if load_cutoff <= when <= now
    )
    return CardioMetrics(
        sessions=len(sessions),
        total_minutes=sum(durations),
        avg_heart_rate=_mean(heart_rates),
        weekly_load=weekly_load,
        source=source,
    )


def compute_health(
    entries: Sequence[LogEntry],
    targets: GoalTargets,
    now: datetime,
    health_metrics: Sequence[HealthMetricEntry] | None = None,
) -> HealthDomainMetrics:
    return HealthDomainMetrics(
        strength=compute_strength(entries, targets.health.strength_challenge_target),
        sleep=compute_sleep(entries, targets),
        cardio=compute_cardio_metrics(entries, health_metrics, now),
    )


# ---------------------------------------------------------------------------
# Productivity
# ---------------------------------------------------------------------------

def compute_productivity(entries: Sequence[LogEntry], targets: GoalTargets) -> ProductivityMetrics:
    goals = targets.productivity
    if not entries:
        return ProductivityMetrics()
    return ProductivityMetrics(
        language=_rate_vs_percentage_goal(entries, "language", goals.language_days_percentage),
        math=_rate_vs_percentage_goal(entries, "math", goals.math_days_percentage),
        code=_rate_vs_percentage_goal(entries, "code", goals.code_days_percentage),
        lessons=_count_vs_monthly_goal(entries, "complete_lesson", goals.lessons_per_month),
    )


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

def compute_overview(
    social: SocialMetrics,
    wellbeing: WellbeingMetrics,
    health: HealthDomainMetrics,
    productivity: ProductivityMetrics,
) -> OverviewScores:
    return OverviewScores(
        social=_mean([
            social.family.progress,
            social.friends.progress,
            social.kat.smile.progress,
            social.kat.review.progress,
        ]),
        wellbeing=_mean([
            wellbeing.journaling.progress,
            wellbeing.meditation.progress,
            wellbeing.epic.progress,
        ]),
        health=_mean([health.strength.progress, health.sleep.bed_on_time.progress]),
        productivity=_mean([
            productivity.language.progress,
            productivity.math.progress,
            productivity.code.progress,
            productivity.lessons.progress,
        ]),
    )


def _filter_health_metrics(
    metrics: Sequence[HealthMetricEntry],
    window: TimeWindow,
    now: datetime,
) -> list[HealthMetricEntry]:
    start = window_start(window, now)
    if start is None:
        return list(metrics)
    return [m for m in metrics if m.date >= start]


def compute_goal_metrics(
    entries: Sequence[LogEntry],
    targets: GoalTargets | None,
    window: TimeWindow | str,
    now: datetime,
    health_metrics: Sequence[HealthMetricEntry] | None = None,
) -> GoalMetrics:
    """Full metric tree for the entries falling inside `window`."""
    targets = targets or GoalTargets()
    window = parse_window(window)
    now = coerce_date(now) or now
    period = filter_entries(entries, window, now)
    measurements = _filter_health_metrics(health_metrics or [], window, now)

    logger.debug(
        "Computing goal metrics: window=%s entries=%d/%d health_metrics=%d",
        window.value, len(period), len(entries), len(measurements),
    )

    social = compute_social(period, targets)
    wellbeing = compute_wellbeing(period, targets)
    health = compute_health(period, targets, now, measurements)
    productivity = compute_productivity(period, targets)

    return GoalMetrics(
        window=window.value,
        days_in_period=len(period),
        social=social,
        wellbeing=wellbeing,
        health=health,
        productivity=productivity,
        overview=compute_overview(social, wellbeing, health, productivity),
    )
