"""Per-day rollups of goal and curriculum activity."""

from datetime import datetime, timedelta

from neural_nexus.models.progress import ActivityAction, DailyStatEntry
from neural_nexus.models.user import User
from neural_nexus.progress.activity import start_of_day

DAILY_STATS_LIMIT = 90


def _entry_for_day(user: User, day: datetime) -> DailyStatEntry:
    for entry in user.daily_stats:
        if entry.date == day:
            return entry
    entry = DailyStatEntry(date=day)
    user.daily_stats.append(entry)
    return entry


def update_daily_stats(
    user: User,
    action: ActivityAction | str,
    time_spent: int = 0,
    now: datetime | None = None,
) -> DailyStatEntry:
    """Bump today's counters for ``action`` and add ``time_spent`` minutes.

    Actions other than goal_created, goal_completed and curriculum_viewed
    only contribute time.
    """
    today = start_of_day(now or datetime.now())
    entry = _entry_for_day(user, today)
    stats = user.progress_stats

    if action == ActivityAction.GOAL_CREATED:
        entry.goals_created += 1
    elif action == ActivityAction.GOAL_COMPLETED:
        entry.goals_completed += 1
        stats.total_goals_completed += 1
    elif action == ActivityAction.CURRICULUM_VIEWED:
        entry.curriculums_viewed += 1

    if time_spent > 0:
        entry.time_spent += time_spent
        stats.total_learning_time += time_spent

    if len(user.daily_stats) > DAILY_STATS_LIMIT:
        user.daily_stats = user.daily_stats[-DAILY_STATS_LIMIT:]
    return entry


def stats_window(user: User, days: int = 30, now: datetime | None = None) -> dict:
    """Entries from the last ``days`` days in date order, with summed totals."""
    now = now or datetime.now()
    cutoff = now - timedelta(days=days)
    entries = sorted(
        (e for e in user.daily_stats if e.date >= cutoff),
        key=lambda e: e.date,
    )
    totals = {
        "goals_created": sum(e.goals_created for e in entries),
        "goals_completed": sum(e.goals_completed for e in entries),
        "curriculums_viewed": sum(e.curriculums_viewed for e in entries),
        "time_spent": sum(e.time_spent for e in entries),
    }
    return {
        "daily_stats": entries,
        "totals": totals,
        "period": {"days": days, "from": cutoff, "to": now},
    }
