"""Tests for the bounded activity log."""

from datetime import datetime, timedelta

from neural_nexus.models.progress import ActivityAction
from neural_nexus.progress.activity import (
    ACTIVITY_LOG_LIMIT,
    activity_counts,
    log_activity,
    recent_activity,
    start_of_day,
)

NOW = datetime(2026, 3, 10, 12, 0)


class TestLogActivity:
    def test_appends_entry_and_updates_last_activity(self, make_user):
        user = make_user()
        entry = log_activity(
            user,
            ActivityAction.GOAL_VIEWED,
            goal_id="g1",
            metadata={"source": "list", "tags": ["a", 1, None]},
            now=NOW,
        )
        assert user.activity_log == [entry]
        assert entry.goal_id == "g1"
        assert entry.metadata["tags"] == ["a", 1, None]
        assert entry.timestamp == NOW
        assert user.last_activity_date == NOW

    def test_never_exceeds_limit_and_evicts_oldest(self, make_user):
        user = make_user()
        start = NOW - timedelta(minutes=ACTIVITY_LOG_LIMIT + 10)
        for i in range(ACTIVITY_LOG_LIMIT + 10):
            log_activity(user, ActivityAction.API_USAGE, metadata={"i": i}, now=start + timedelta(minutes=i))
        assert len(user.activity_log) == ACTIVITY_LOG_LIMIT
        assert user.activity_log[0].metadata["i"] == 10
        assert user.activity_log[-1].metadata["i"] == ACTIVITY_LOG_LIMIT + 9


class TestActivityQueries:
    def test_recent_activity_is_newest_first(self, make_user):
        user = make_user()
        for i in range(5):
            log_activity(user, ActivityAction.LOGIN, metadata={"i": i}, now=NOW + timedelta(minutes=i))
        page, has_more = recent_activity(user, limit=2, offset=0)
        assert [e.metadata["i"] for e in page] == [4, 3]
        assert has_more is True
        page, has_more = recent_activity(user, limit=2, offset=4)
        assert [e.metadata["i"] for e in page] == [0]
        assert has_more is False

    def test_activity_counts(self, make_user):
        user = make_user()
        log_activity(user, ActivityAction.LOGIN, now=NOW - timedelta(days=10))
        log_activity(user, ActivityAction.LOGIN, now=NOW - timedelta(days=2))
        log_activity(user, ActivityAction.LOGIN, now=NOW - timedelta(hours=1))
        counts = activity_counts(user, NOW)
        assert counts == {
            "activities_today": 1,
            "activities_this_week": 2,
            "total_activities": 3,
        }

    def test_start_of_day(self):
        assert start_of_day(NOW) == datetime(2026, 3, 10)
