"""Progress report rendered by the profile dashboard."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from neural_nexus.models.goal import Goal
from neural_nexus.models.user import User
from neural_nexus.progress.activity import start_of_day
from neural_nexus.progress.experience import experience_to_next_level, level_progress
from neural_nexus.progress.streak import calculate_streak


def week_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Sunday-start calendar week containing ``now``."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = start_of_day(now) - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=7)


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = start_of_day(now).replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def _completed_within(goals: list[Goal], start: datetime, end: datetime) -> int:
    return sum(
        1 for g in goals
        if g.is_completed and start <= (g.completed_at or g.updated_at) < end
    )


def _created_within(goals: list[Goal], start: datetime, end: datetime) -> int:
    return sum(1 for g in goals if start <= g.created_at < end)


def build_progress_report(user: User, goals: Iterable[Goal], now: datetime | None = None) -> dict:
    """Streak, level and goal-completion figures for the current week and month.

    Recomputes the streak on ``user`` as a side effect.
    """
    now = now or datetime.now()
    goals = list(goals)
    streak = calculate_streak(user, now)
    stats = user.progress_stats

    week_start, week_end = week_bounds(now)
    completed_this_week = _completed_within(goals, week_start, week_end)
    created_this_week = _created_within(goals, week_start, week_end)
    weekly_progress = (
        round(completed_this_week / created_this_week * 100) if created_this_week else 0
    )

    month_start, month_end = month_bounds(now)

    return {
        "streak_days": streak,
        "longest_streak": stats.longest_streak,
        "weekly_progress": weekly_progress,
        "monthly_goals": {
            "completed": _completed_within(goals, month_start, month_end),
            "total": _created_within(goals, month_start, month_end),
        },
        "level_progress": level_progress(stats.level, stats.experience),
        "level": stats.level,
        "experience": stats.experience,
        "experience_to_next_level": experience_to_next_level(stats.level, stats.experience),
        "total_goals_completed": stats.total_goals_completed,
        "total_learning_time": stats.total_learning_time,
    }
