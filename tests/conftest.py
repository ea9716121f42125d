"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from lifetrack.engine.ingest import parse_health_metric, parse_log_entry
from lifetrack.engine.values import HealthMetricEntry, LogEntry
from lifetrack.main import app

# Fixed "now" for every test; never rely on the wall clock.
NOW = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def make_log_row(d: date | datetime | str, **fields: Any) -> dict[str, Any]:
    """Raw log row as the host would send it: a date plus loose form fields."""
    if isinstance(d, datetime):
        d = d.isoformat()
    elif isinstance(d, date):
        d = d.isoformat()
    return {"date": d, **fields}


def make_entry(d: date | datetime, **fields: Any) -> LogEntry:
    """Parsed LogEntry for the given day (noon UTC for plain dates)."""
    if not isinstance(d, datetime):
        d = datetime(d.year, d.month, d.day, 12, 0, tzinfo=timezone.utc)
    entry = parse_log_entry({"date": d, **fields})
    assert entry is not None
    return entry


def days_ago(n: int, now: datetime = NOW) -> datetime:
    return now - timedelta(days=n)


def make_health_metric(d: date | datetime, **values: Any) -> HealthMetricEntry:
    if not isinstance(d, datetime):
        d = datetime(d.year, d.month, d.day, 12, 0, tzinfo=timezone.utc)
    metric = parse_health_metric({"date": d, **values})
    assert metric is not None
    return metric
