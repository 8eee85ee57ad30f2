"""Consecutive-day streaks derived from the activity log."""

from datetime import date, datetime, timedelta

from neural_nexus.models.user import User


def active_days(user: User) -> set[date]:
    """Distinct local calendar days with at least one logged activity."""
    return {entry.timestamp.date() for entry in user.activity_log}


def calculate_streak(user: User, today: datetime | date | None = None) -> int:
    """Recompute the current streak from scratch and record it on ``user``.

    Walks backward from today while each day has activity. No activity
    today means a streak of 0. Only the retained (bounded) log counts.
    """
    if today is None:
        today = datetime.now()
    if isinstance(today, datetime):
        today = today.date()

    days = active_days(user)
    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)

    stats = user.progress_stats
    stats.current_streak = streak
    stats.longest_streak = max(stats.longest_streak, streak)
    return streak
