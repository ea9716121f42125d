"""Tests for raw-row ingestion and legacy value conversion."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from lifetrack.engine.ingest import (
    coerce_date,
    parse_health_metric,
    parse_log_entries,
    parse_log_entry,
    to_field_value,
)
from lifetrack.engine.values import Flag, Missing, Number, Text


class _FirestoreLikeTimestamp:
    def __init__(self, dt: datetime):
        self._dt = dt

    def to_datetime(self) -> datetime:
        return self._dt


class _ProtobufLikeTimestamp:
    def __init__(self, dt: datetime):
        self._dt = dt

    def ToDatetime(self) -> datetime:
        return self._dt


class _BrokenTimestamp:
    def to_datetime(self):
        raise ValueError("corrupt")


class TestCoerceDate:
    def test_aware_datetime(self):
        dt = datetime(2026, 2, 15, 8, 30, tzinfo=timezone.utc)
        assert coerce_date(dt) == dt

    def test_naive_datetime_is_utc(self):
        result = coerce_date(datetime(2026, 2, 15, 8, 30))
        assert result == datetime(2026, 2, 15, 8, 30, tzinfo=timezone.utc)

    def test_plain_date(self):
        assert coerce_date(date(2026, 2, 15)) == datetime(2026, 2, 15, tzinfo=timezone.utc)

    def test_iso_string(self):
        assert coerce_date("2026-02-15T08:30:00Z") == datetime(2026, 2, 15, 8, 30, tzinfo=timezone.utc)

    def test_form_timestamp_string(self):
        assert coerce_date("2/15/2026 8:30:00") == datetime(2026, 2, 15, 8, 30, tzinfo=timezone.utc)

    def test_store_wrapper(self):
        dt = datetime(2026, 2, 15, tzinfo=timezone.utc)
        assert coerce_date(_FirestoreLikeTimestamp(dt)) == dt

    def test_protobuf_wrapper(self):
        dt = datetime(2026, 2, 15, tzinfo=timezone.utc)
        assert coerce_date(_ProtobufLikeTimestamp(dt)) == dt

    def test_out_of_range_after_utc_conversion(self):
        assert coerce_date("0001-01-01T00:00:00+05:00") is None
        assert coerce_date(datetime(9999, 12, 31, 23, tzinfo=timezone(timedelta(hours=-5)))) is None

    def test_failing_wrapper_returns_none(self):
        assert coerce_date(_BrokenTimestamp()) is None

    def test_garbage(self):
        assert coerce_date("not a date") is None
        assert coerce_date("") is None
        assert coerce_date(None) is None
        assert coerce_date(12345) is None


class TestToFieldValue:
    def test_yes_no(self):
        assert to_field_value("Yes") == Flag(True)
        assert to_field_value("No") == Flag(False)
        assert to_field_value(" yes ") == Flag(True)

    def test_bool(self):
        assert to_field_value(True) == Flag(True)

    def test_numbers(self):
        assert to_field_value(12) == Number(12.0)
        assert to_field_value("12.5") == Number(12.5)

    def test_nan_is_missing(self):
        assert to_field_value(float("nan")) is Missing

    def test_text(self):
        assert to_field_value("met Sam at climbing") == Text("met Sam at climbing")

    def test_empty(self):
        assert to_field_value("") is Missing
        assert to_field_value("   ") is Missing
        assert to_field_value(None) is Missing


class TestParseLogEntry:
    def test_basic(self):
        entry = parse_log_entry({"date": "2026-02-15", "talk_fam": "Yes", "pushups": "20"})
        assert entry is not None
        assert entry.is_yes("talk_fam")
        assert entry.number("pushups") == 20.0
        assert entry.get("unknown") is Missing

    def test_timestamp_key(self):
        entry = parse_log_entry({"Timestamp": "2/15/2026 21:04:11", "meditation": "No"})
        assert entry is not None
        assert entry.date.day == 15
        assert "Timestamp" not in entry.fields

    def test_missing_date_dropped(self):
        assert parse_log_entry({"talk_fam": "Yes"}) is None
        assert parse_log_entry({"date": "whenever", "talk_fam": "Yes"}) is None

    def test_nested_fields_flattened(self):
        entry = parse_log_entry({"date": "2026-02-15", "health": {"exercise": True}})
        assert entry is not None
        assert entry.is_yes("health.exercise")

    def test_out_of_range_date_drops_row(self):
        rows = [{"date": "0001-01-01T00:00:00+05:00", "talk_fam": "Yes"}]
        assert parse_log_entries(rows) == []

    def test_batch_sorts_and_drops(self):
        entries = parse_log_entries([
            {"date": "2026-02-15"},
            {"talk_fam": "Yes"},
            {"date": "2026-02-10"},
        ])
        assert [e.date.day for e in entries] == [10, 15]


class TestParseHealthMetric:
    def test_numeric_only(self):
        metric = parse_health_metric({
            "date": "2026-02-15",
            "vo2max": "47.5",
            "notes": "felt good",
            "exerciseData": {"duration": 40, "type": "run"},
        })
        assert metric is not None
        assert metric.get("vo2max") == 47.5
        assert metric.get("exerciseData.duration") == 40.0
        assert metric.get("notes") is None
        assert metric.get("exerciseData.type") is None

    def test_no_date(self):
        assert parse_health_metric({"vo2max": 47}) is None
