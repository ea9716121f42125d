"""Field value union and the immutable record types the engine computes over."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Union


@dataclass(frozen=True, slots=True)
class Flag:
    value: bool


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class _Missing:
    def __repr__(self) -> str:
        return "Missing"


Missing = _Missing()

FieldValue = Union[Flag, Number, Text, _Missing]


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One calendar day's record: a date plus an open set of named fields."""

    date: datetime
    fields: Mapping[str, FieldValue] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> FieldValue:
        return self.fields.get(name, Missing)

    def is_yes(self, name: str) -> bool:
        value = self.get(name)
        return isinstance(value, Flag) and value.value

    def number(self, name: str) -> float | None:
        value = self.get(name)
        if isinstance(value, Number):
            return value.value
        return None

    def number_or_zero(self, name: str) -> float:
        value = self.number(name)
        return value if value is not None else 0.0


@dataclass(frozen=True, slots=True)
class HealthMetricEntry:
    """A longitudinal measurement; only numeric fields survive ingestion."""

    date: datetime
    values: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> float | None:
        return self.values.get(name)
