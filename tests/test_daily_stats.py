"""Tests for daily statistics aggregation."""

from datetime import datetime, timedelta

from neural_nexus.models.progress import ActivityAction
from neural_nexus.progress.daily_stats import DAILY_STATS_LIMIT, stats_window, update_daily_stats

NOW = datetime(2026, 3, 10, 15, 45)


class TestUpdateDailyStats:
    def test_goal_completed_twice_same_day(self, make_user):
        user = make_user()
        update_daily_stats(user, ActivityAction.GOAL_COMPLETED, now=NOW)
        update_daily_stats(user, ActivityAction.GOAL_COMPLETED, now=NOW + timedelta(hours=2))
        assert len(user.daily_stats) == 1
        assert user.daily_stats[0].goals_completed == 2
        assert user.progress_stats.total_goals_completed == 2

    def test_entry_keyed_by_local_midnight(self, make_user):
        user = make_user()
        entry = update_daily_stats(user, ActivityAction.GOAL_CREATED, now=NOW)
        assert entry.date == datetime(2026, 3, 10)
        assert entry.goals_created == 1

    def test_curriculum_viewed_with_time(self, make_user):
        user = make_user()
        entry = update_daily_stats(user, ActivityAction.CURRICULUM_VIEWED, time_spent=5, now=NOW)
        assert entry.curriculums_viewed == 1
        assert entry.time_spent == 5
        assert user.progress_stats.total_learning_time == 5

    def test_untracked_action_only_adds_time(self, make_user):
        user = make_user()
        entry = update_daily_stats(user, ActivityAction.DASHBOARD_VIEWED, time_spent=12, now=NOW)
        assert (entry.goals_created, entry.goals_completed, entry.curriculums_viewed) == (0, 0, 0)
        assert entry.time_spent == 12
        assert user.progress_stats.total_learning_time == 12

    def test_zero_time_leaves_totals(self, make_user):
        user = make_user()
        update_daily_stats(user, ActivityAction.LOGIN, time_spent=0, now=NOW)
        assert user.progress_stats.total_learning_time == 0

    def test_retention_evicts_oldest_days(self, make_user):
        user = make_user()
        first_day = NOW - timedelta(days=DAILY_STATS_LIMIT + 4)
        for i in range(DAILY_STATS_LIMIT + 5):
            update_daily_stats(user, ActivityAction.GOAL_CREATED, now=first_day + timedelta(days=i))
        assert len(user.daily_stats) == DAILY_STATS_LIMIT
        assert user.daily_stats[0].date == datetime(2026, 3, 10) - timedelta(days=DAILY_STATS_LIMIT - 1)
        assert user.daily_stats[-1].date == datetime(2026, 3, 10)


class TestStatsWindow:
    def test_filters_and_totals(self, make_user):
        user = make_user()
        update_daily_stats(user, ActivityAction.GOAL_CREATED, now=NOW - timedelta(days=40))
        update_daily_stats(user, ActivityAction.GOAL_CREATED, time_spent=10, now=NOW - timedelta(days=3))
        update_daily_stats(user, ActivityAction.GOAL_COMPLETED, time_spent=20, now=NOW)

        window = stats_window(user, days=30, now=NOW)
        assert [e.date.day for e in window["daily_stats"]] == [7, 10]
        assert window["totals"] == {
            "goals_created": 1,
            "goals_completed": 1,
            "curriculums_viewed": 0,
            "time_spent": 30,
        }
        assert window["period"]["days"] == 30
