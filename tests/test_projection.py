"""Tests for goal projection."""

from __future__ import annotations

from datetime import timedelta

import pytest

from lifetrack.engine.aggregator import compute_goal_metrics
from lifetrack.engine.models import Goal
from lifetrack.engine.projection import (
    counting_rate,
    cumulative_challenge_rate,
    days_between,
    progress_percentage,
    project,
    project_goals,
    resolve_current_value,
)

from tests.conftest import NOW, days_ago, make_entry


def _strength_day(n: int, total: int):
    return make_entry(days_ago(n), strength="Yes", pushups=total, rows=0, situps=0, squats=0)


class TestHelpers:
    def test_days_between_rounds_up(self):
        assert days_between(NOW, NOW + timedelta(days=1, hours=12)) == 2

    def test_days_between_absolute(self):
        assert days_between(NOW + timedelta(days=3), NOW) == 3

    def test_progress_zero_target(self):
        assert progress_percentage(0, 0) == 100.0
        assert progress_percentage(-1, 0) == 0.0

    def test_progress_uncapped(self):
        assert progress_percentage(500, 400) == 125.0

    def test_cumulative_rate(self):
        history = [_strength_day(10, 100), _strength_day(0, 200)]
        assert cumulative_challenge_rate(history, "strength", ("pushups",)) == pytest.approx(10.0)

    def test_cumulative_rate_single_attempt(self):
        assert cumulative_challenge_rate([_strength_day(0, 200)], "strength", ("pushups",)) == 0.0

    def test_counting_rate_uses_distinct_days(self):
        history = [make_entry(days_ago(n)) for n in range(10)]
        history.append(make_entry(days_ago(0)))
        assert counting_rate(1, history) == pytest.approx(0.1)

    def test_counting_rate_empty(self):
        assert counting_rate(3, []) == 0.0


class TestRolling:
    def test_rolling_goal(self):
        goal = Goal(key="strength_challenge", target_value=400, target_date="rolling")
        result = project(goal, 200, [], NOW)
        assert result.is_rolling
        assert result.status == "rolling"
        assert result.progress_percentage == 50.0
        assert result.days_until_target is None
        assert result.is_on_track is None


class TestDatedGoals:
    def test_already_met_is_on_track(self):
        goal = Goal(key="strength_challenge", target_value=400, target_date=NOW + timedelta(days=5))
        result = project(goal, 400, [], NOW)
        assert result.rate_of_progress == 0.0
        assert result.is_on_track is True
        assert result.status == "achieved"

    def test_strength_rate_on_track(self):
        goal = Goal(key="strength_challenge", target_value=400, target_date=NOW + timedelta(days=30))
        history = [_strength_day(10, 100), _strength_day(0, 200)]
        result = project(goal, 200, history, NOW)
        assert result.rate_of_progress == pytest.approx(10.0)
        assert result.projected_completion_date == NOW + timedelta(days=20)
        assert result.needed_rate is None
        assert result.is_on_track is True
        assert result.status == "on_track"

    def test_strength_rate_too_slow(self):
        goal = Goal(key="strength_challenge", target_value=400, target_date=NOW + timedelta(days=10))
        history = [_strength_day(10, 100), _strength_day(0, 200)]
        result = project(goal, 200, history, NOW)
        assert result.is_on_track is False
        assert result.status == "behind"

    def test_completion_past_calendar_end(self):
        goal = Goal(key="strength_challenge", target_value=10000, target_date=NOW + timedelta(days=60))
        history = [_strength_day(365, 100), _strength_day(0, 101)]
        result = project(goal, 101, history, NOW)
        assert result.rate_of_progress > 0
        assert result.projected_completion_date is None
        assert result.is_on_track is False
        assert result.status == "behind"

    def test_counting_goal_behind(self):
        goal = Goal(key="new_contacts", target_value=5, target_date=NOW + timedelta(days=20))
        history = [make_entry(days_ago(n)) for n in range(10)]
        result = project(goal, 1, history, NOW)
        assert result.rate_of_progress == pytest.approx(0.1)
        assert result.projected_completion_date > goal.target_date
        assert result.is_on_track is False

    def test_negligible_needed_rate_is_on_track(self):
        goal = Goal(key="reading", target_value=100, target_date=NOW + timedelta(days=100))
        result = project(goal, 95, [], NOW)
        assert result.needed_rate == pytest.approx(0.05)
        assert result.is_on_track is True
        assert result.status == "on_track"

    def test_needed_rate_above_tolerance(self):
        goal = Goal(key="reading", target_value=100, target_date=NOW + timedelta(days=10))
        result = project(goal, 95, [], NOW)
        assert result.needed_rate == pytest.approx(0.5)
        assert result.is_on_track is False

    def test_target_date_today(self):
        goal = Goal(key="reading", target_value=100, target_date=NOW)
        result = project(goal, 60, [], NOW)
        assert result.days_until_target == 0
        assert result.needed_rate == 40.0
        assert result.is_on_track is False

    def test_iso_string_target_date(self):
        goal = Goal(key="reading", target_value=10, target_date="2026-03-17T12:00:00Z")
        assert project(goal, 0, [], NOW).days_until_target == 30


class TestResolveCurrentValue:
    def test_explicit_value_wins(self):
        goal = Goal(key="strength_challenge", target_value=400, current_value=123)
        assert resolve_current_value(goal, None) == 123

    def test_from_metrics(self):
        entries = [_strength_day(1, 250)]
        metrics = compute_goal_metrics(entries, None, "all", NOW)
        goal = Goal(key="strength_challenge", target_value=400)
        assert resolve_current_value(goal, metrics) == 250.0

    def test_unknown_key_defaults_to_zero(self):
        assert resolve_current_value(Goal(key="reading", target_value=10), None) == 0.0

    def test_project_goals_empty_history(self):
        goals = [
            Goal(key="strength_challenge", target_value=400, target_date=NOW + timedelta(days=30)),
            Goal(key="new_contacts", target_value=5),
        ]
        results = project_goals(goals, [], NOW)
        assert [r.goal_key for r in results] == ["strength_challenge", "new_contacts"]
        assert results[0].status == "behind"
        assert results[1].status == "rolling"
