"""Translate raw, loosely-typed log rows into LogEntry / HealthMetricEntry.

All legacy conventions (Yes/No strings, numbers stored as text, store-specific
timestamp wrappers) are resolved here so the formulas only see FieldValue.
Returns None / drops rows on any failure. Never raises.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping
from zoneinfo import ZoneInfo

from lifetrack.config import settings
from lifetrack.engine.values import (
    FieldValue,
    Flag,
    HealthMetricEntry,
    LogEntry,
    Missing,
    Number,
    Text,
)

logger = logging.getLogger(__name__)

# Keys that carry the record's instant rather than a tracked field.
DATE_KEYS = ("date", "Timestamp", "timestamp")

# Spreadsheet form exports ("Form Responses 1") use US-style timestamps.
_STRING_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M", "%m/%d/%Y")

# Conversion hooks exposed by store timestamp wrappers (Firestore-style,
# protobuf Timestamp, pandas Timestamp).
_WRAPPER_METHODS = ("to_datetime", "ToDatetime", "to_pydatetime", "toDate")


def _localize(dt: datetime) -> datetime | None:
    """Aware UTC datetime, None when the instant falls outside the UTC calendar."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(settings.default_tz))
    try:
        return dt.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        logger.debug("Date %r out of range after UTC conversion", dt)
        return None


def _parse_date_string(raw: str) -> datetime | None:
    text = raw.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _STRING_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def coerce_date(raw: Any) -> datetime | None:
    """Coerce a native instant, a timestamp wrapper or a string to an aware UTC datetime."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return _localize(raw)
    if isinstance(raw, date):
        return _localize(datetime.combine(raw, time.min))
    if isinstance(raw, str):
        parsed = _parse_date_string(raw)
        return _localize(parsed) if parsed is not None else None
    for method in _WRAPPER_METHODS:
        convert = getattr(raw, method, None)
        if callable(convert):
            try:
                converted = convert()
            except (TypeError, ValueError, OverflowError):
                return None
            if isinstance(converted, datetime):
                return _localize(converted)
            return None
    return None


def to_field_value(raw: Any) -> FieldValue:
    """Map a raw cell to the FieldValue union."""
    if raw is None or raw is Missing:
        return Missing
    if isinstance(raw, (Flag, Number, Text)):
        return raw
    if isinstance(raw, bool):
        return Flag(raw)
    if isinstance(raw, (int, float)):
        value = float(raw)
        return Number(value) if math.isfinite(value) else Missing
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return Missing
        lowered = text.lower()
        if lowered == "yes":
            return Flag(True)
        if lowered == "no":
            return Flag(False)
        try:
            value = float(text)
        except ValueError:
            return Text(text)
        return Number(value) if math.isfinite(value) else Text(text)
    return Missing


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys: {'a': {'b': 1}} -> {'a.b': 1}."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def _row_date(row: Mapping[str, Any]) -> datetime | None:
    for key in DATE_KEYS:
        if key in row:
            parsed = coerce_date(row[key])
            if parsed is not None:
                return parsed
    return None


def parse_log_entry(row: Mapping[str, Any]) -> LogEntry | None:
    """Build a LogEntry from a raw row. None when the row has no usable date."""
    if isinstance(row, LogEntry):
        return row
    if not isinstance(row, Mapping):
        return None
    entry_date = _row_date(row)
    if entry_date is None:
        return None
    fields = {
        name: to_field_value(value)
        for name, value in _flatten(row).items()
        if name not in DATE_KEYS
    }
    return LogEntry(date=entry_date, fields=MappingProxyType(fields))


def parse_log_entries(rows: Iterable[Mapping[str, Any]]) -> list[LogEntry]:
    """Parse rows, dropping the ones without a valid date. Sorted by date."""
    entries: list[LogEntry] = []
    dropped = 0
    for row in rows:
        entry = parse_log_entry(row)
        if entry is None:
            dropped += 1
            continue
        entries.append(entry)
    if dropped:
        logger.debug("Dropped %d log row(s) without a usable date", dropped)
    entries.sort(key=lambda e: e.date)
    return entries


def parse_health_metric(row: Mapping[str, Any]) -> HealthMetricEntry | None:
    """Build a HealthMetricEntry keeping only numeric fields."""
    if isinstance(row, HealthMetricEntry):
        return row
    if not isinstance(row, Mapping):
        return None
    entry_date = _row_date(row)
    if entry_date is None:
        return None
    values: dict[str, float] = {}
    for name, raw in _flatten(row).items():
        if name in DATE_KEYS:
            continue
        value = to_field_value(raw)
        if isinstance(value, Number):
            values[name] = value.value
    return HealthMetricEntry(date=entry_date, values=MappingProxyType(values))


def parse_health_metrics(rows: Iterable[Mapping[str, Any]]) -> list[HealthMetricEntry]:
    metrics = [m for m in (parse_health_metric(r) for r in rows) if m is not None]
    metrics.sort(key=lambda m: m.date)
    return metrics
