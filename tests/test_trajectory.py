"""Tests for the linear trajectory tracker."""

from __future__ import annotations

from datetime import timedelta

import pytest

from lifetrack.engine.models import Goal
from lifetrack.engine.trajectory import infer_initial_value, latest_measurement, track, track_goal

from tests.conftest import NOW, days_ago, make_health_metric


def _vo2_history():
    return [
        make_health_metric(days_ago(20), vo2max=47),
        make_health_metric(days_ago(40), vo2max=45),
        make_health_metric(days_ago(5), heartRate=60),
    ]


class TestTrack:
    def test_halfway_on_path(self):
        t = track(46, 49, 52, NOW - timedelta(days=30), NOW + timedelta(days=30), NOW)
        assert t.total_days == 60
        assert t.elapsed_days == 30
        assert t.percent_complete == 50.0
        assert t.expected_today == pytest.approx(49.0)
        assert t.difference == pytest.approx(0.0)
        assert t.is_on_track
        assert t.projected_final == pytest.approx(52.0)

    def test_tolerance_band(self):
        start, end = NOW - timedelta(days=30), NOW + timedelta(days=30)
        assert track(46, 48.6, 52, start, end, NOW).is_on_track
        assert not track(46, 48.4, 52, start, end, NOW).is_on_track

    def test_zero_length_window_uses_midpoint(self):
        t = track(46, 48, 52, NOW, NOW, NOW)
        assert t.total_days == 0
        assert t.expected_today == 49.0
        assert t.percent_complete == 0.0

    def test_nothing_elapsed_projects_initial(self):
        t = track(46, 46, 52, NOW, NOW + timedelta(days=30), NOW)
        assert t.elapsed_days == 0
        assert t.expected_today == 46.0
        assert t.projected_final == 46.0

    def test_past_end_date_caps_progress(self):
        t = track(46, 50, 52, NOW - timedelta(days=60), NOW - timedelta(days=30), NOW)
        assert t.percent_complete == 100.0
        assert t.expected_today == 52.0

    def test_points(self):
        t = track(46, 49, 52, NOW - timedelta(days=30), NOW + timedelta(days=30), NOW)
        assert [p.label for p in t.points] == ["start", "today", "target"]
        assert t.points[1].actual == 49
        assert t.points[2].projected == pytest.approx(52.0)


class TestMeasurements:
    def test_latest(self):
        assert latest_measurement(_vo2_history(), "vo2max") == 47.0

    def test_latest_none(self):
        assert latest_measurement([], "vo2max") is None

    def test_initial_before_creation(self):
        assert infer_initial_value(_vo2_history(), "vo2max", 52, days_ago(30)) == 45.0

    def test_initial_earliest_when_none_before_creation(self):
        assert infer_initial_value(_vo2_history(), "vo2max", 52, days_ago(100)) == 45.0

    def test_initial_fallback_fraction_of_target(self):
        assert infer_initial_value([], "vo2max", 52) == pytest.approx(46.8)


class TestTrackGoal:
    def test_rolling_has_no_trajectory(self):
        goal = Goal(key="vo2max", target_value=52, target_date=None)
        assert track_goal(goal, _vo2_history(), NOW) is None

    def test_fills_from_measurements(self):
        goal = Goal(
            key="vo2max",
            target_value=52,
            created_at=days_ago(30),
            target_date=NOW + timedelta(days=30),
        )
        t = track_goal(goal, _vo2_history(), NOW)
        assert t is not None
        assert t.initial_value == 45.0
        assert t.current_value == 47.0
        assert t.expected_today == pytest.approx(48.5)
        assert not t.is_on_track

    def test_inverted_dates_clamped(self):
        goal = Goal(
            key="vo2max",
            target_value=52,
            initial_value=46,
            created_at=NOW,
            target_date=NOW - timedelta(days=10),
        )
        t = track_goal(goal, [], NOW)
        assert t is not None
        assert t.end_date == t.start_date
        assert t.expected_today == 49.0
        assert t.current_value == 46

    def test_goal_current_value_used_without_measurements(self):
        goal = Goal(
            key="vo2max",
            target_value=52,
            initial_value=46,
            current_value=50,
            created_at=days_ago(10),
            target_date=NOW + timedelta(days=10),
        )
        t = track_goal(goal, [], NOW)
        assert t is not None
        assert t.current_value == 50
        assert t.is_on_track
