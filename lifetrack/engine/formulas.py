"""Per-metric formulas over a set of log entries. Math only, never raises.

Every formula returns 0.0 for an empty entry set and for unknown metric names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from lifetrack.engine.values import Flag, LogEntry, Number, Text


@dataclass(frozen=True, slots=True)
class MetricFormula:
    name: str
    kind: str  # "binary" | "tolerant" | "average" | "latest_cumulative"
    field: str
    parts: tuple[str, ...] = ()  # sub-count fields for latest_cumulative
    label: str = ""


STRENGTH_PARTS = ("pushups", "rows", "situps", "squats")


# ---------------------------------------------------------------------------
# Formula kinds
# ---------------------------------------------------------------------------

def count_flag(entries: Sequence[LogEntry], field: str) -> int:
    """Number of entries where `field` is a set flag ("Yes")."""
    return sum(1 for e in entries if e.is_yes(field))


def is_tolerant_yes(entry: LogEntry, field: str) -> bool:
    """Flag set, or a legacy positive number / non-empty text other than "No"."""
    value = entry.get(field)
    if isinstance(value, Flag):
        return value.value
    if isinstance(value, Number):
        return value.value > 0
    if isinstance(value, Text):
        return bool(value.value) and value.value.strip().lower() != "no"
    return False


def count_tolerant(entries: Sequence[LogEntry], field: str) -> int:
    return sum(1 for e in entries if is_tolerant_yes(e, field))


def rate(count: float, total: float) -> float:
    """count / total * 100, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return count / total * 100.0


def binary_rate(entries: Sequence[LogEntry], field: str) -> float:
    return rate(count_flag(entries, field), len(entries))


def tolerant_rate(entries: Sequence[LogEntry], field: str) -> float:
    return rate(count_tolerant(entries, field), len(entries))


def average_of_present(entries: Sequence[LogEntry], field: str) -> float:
    """Mean over entries where the field is numeric; others are excluded entirely."""
    values = [v for v in (e.number(field) for e in entries) if v is not None]
    if not values:
        return 0.0
    return sum(values) / len(values)


def qualifying_entries(entries: Sequence[LogEntry], flag_field: str) -> list[LogEntry]:
    """Entries with the flag set, ordered by date (stable for equal dates)."""
    return sorted((e for e in entries if e.is_yes(flag_field)), key=lambda e: e.date)


def cumulative_total(entry: LogEntry, parts: Sequence[str]) -> float:
    return sum(entry.number_or_zero(p) for p in parts)


def latest_cumulative(entries: Sequence[LogEntry], flag_field: str, parts: Sequence[str]) -> float:
    """Sum of sub-counts on the most recent qualifying entry (not a sum across days)."""
    qualifying = qualifying_entries(entries, flag_field)
    if not qualifying:
        return 0.0
    return cumulative_total(qualifying[-1], parts)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def _binary(name: str, field: str, label: str) -> MetricFormula:
    return MetricFormula(name=name, kind="binary", field=field, label=label)


METRIC_FORMULAS: dict[str, MetricFormula] = {
    f.name: f
    for f in (
        _binary("family_contact", "talk_fam", "Family contact"),
        _binary("friend_contact", "talk_old_friend", "Friend contact"),
        _binary("kat_smile", "kat_smile", "Made Kat smile"),
        _binary("kat_review", "kat_review", "Kat review"),
        _binary("morning_journal", "morning_journal", "Morning journal"),
        _binary("evening_journal", "evening_journal", "Evening journal"),
        _binary("meditation", "meditation", "Meditation"),
        _binary("epic_activity", "epic_activity", "Epic activity"),
        _binary("sleep_on_time", "bed_on_time", "Bed on time"),
        _binary("up_on_time", "up_on_time", "Up on time"),
        _binary("language", "language", "Language"),
        _binary("math", "math", "Math"),
        _binary("code", "code", "Coding"),
        _binary("lessons", "complete_lesson", "Lessons completed"),
        MetricFormula("new_friends", "tolerant", "new_friends", label="New friends"),
        MetricFormula("cardio", "tolerant", "cardio", label="Cardio"),
        MetricFormula("vibes", "average", "vibes", label="Vibes"),
        MetricFormula("energy", "average", "energy", label="Energy"),
        MetricFormula("mood", "average", "mood", label="Mood"),
        MetricFormula(
            "strength_total",
            "latest_cumulative",
            "strength",
            parts=STRENGTH_PARTS,
            label="400 challenge total",
        ),
    )
}


def get_formula(metric_name: str) -> MetricFormula | None:
    return METRIC_FORMULAS.get(metric_name)


def list_metrics() -> list[str]:
    return list(METRIC_FORMULAS.keys())


def compute(metric_name: str, entries: Sequence[LogEntry]) -> float:
    """Scalar value of `metric_name` over `entries`. Unknown names yield 0."""
    formula = get_formula(metric_name)
    if formula is None or not entries:
        return 0.0
    if formula.kind == "binary":
        return binary_rate(entries, formula.field)
    if formula.kind == "tolerant":
        return tolerant_rate(entries, formula.field)
    if formula.kind == "average":
        return average_of_present(entries, formula.field)
    if formula.kind == "latest_cumulative":
        return latest_cumulative(entries, formula.field, formula.parts)
    return 0.0
