"""Tests for the progress report."""

from datetime import datetime, timedelta

from neural_nexus.models.goal import Goal, GoalStatus
from neural_nexus.models.progress import ActivityAction
from neural_nexus.progress.activity import log_activity
from neural_nexus.progress.report import build_progress_report, month_bounds, week_bounds

# A Wednesday.
NOW = datetime(2026, 3, 11, 15, 0)


def _goal(created_at, status=GoalStatus.PENDING, completed_at=None) -> Goal:
    return Goal(
        user_id="u" * 32,
        description="goal",
        status=status,
        created_at=created_at,
        updated_at=completed_at or created_at,
        completed_at=completed_at,
    )


def test_week_starts_on_sunday():
    start, end = week_bounds(NOW)
    assert start == datetime(2026, 3, 8)
    assert end == datetime(2026, 3, 15)


def test_week_bounds_on_sunday_itself():
    start, _ = week_bounds(datetime(2026, 3, 8, 0, 30))
    assert start == datetime(2026, 3, 8)


def test_month_bounds_wraps_year():
    assert month_bounds(datetime(2026, 12, 31, 23, 59)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))


def test_report_figures(make_user):
    user = make_user()
    user.progress_stats.experience = 40
    user.progress_stats.total_goals_completed = 1
    for n in range(3):
        log_activity(user, ActivityAction.LOGIN, now=NOW - timedelta(days=n))

    goals = [
        _goal(datetime(2026, 3, 9), GoalStatus.COMPLETED, completed_at=datetime(2026, 3, 10)),
        _goal(datetime(2026, 3, 10)),
        _goal(datetime(2026, 3, 2)),
        _goal(datetime(2026, 2, 20)),
    ]
    report = build_progress_report(user, goals, NOW)

    assert report["streak_days"] == 3
    assert report["longest_streak"] == 3
    assert report["weekly_progress"] == 50
    assert report["monthly_goals"] == {"completed": 1, "total": 3}
    assert report["level_progress"] == 40
    assert report["experience_to_next_level"] == 60
    assert report["total_goals_completed"] == 1


def test_report_without_goals(make_user):
    report = build_progress_report(make_user(), [], NOW)
    assert report["weekly_progress"] == 0
    assert report["monthly_goals"] == {"completed": 0, "total": 0}
    assert report["streak_days"] == 0
