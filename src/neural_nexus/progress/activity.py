"""Append-only activity log with bounded retention."""

from datetime import datetime, timedelta

from pydantic import JsonValue

from neural_nexus.models.progress import ActivityAction, ActivityEntry
from neural_nexus.models.user import User

ACTIVITY_LOG_LIMIT = 1000


def start_of_day(moment: datetime) -> datetime:
    """Truncate to local midnight."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def trim_activity_log(user: User) -> None:
    if len(user.activity_log) > ACTIVITY_LOG_LIMIT:
        user.activity_log = user.activity_log[-ACTIVITY_LOG_LIMIT:]


def log_activity(
    user: User,
    action: ActivityAction,
    goal_id: str | None = None,
    metadata: dict[str, JsonValue] | None = None,
    now: datetime | None = None,
) -> ActivityEntry:
    """Append an entry stamped ``now`` and evict the oldest beyond the limit.

    This is the only place activity timestamps are created; streaks are
    derived from them. The caller persists the user.
    """
    now = now or datetime.now()
    entry = ActivityEntry(
        action=action,
        goal_id=goal_id,
        metadata=dict(metadata or {}),
        timestamp=now,
    )
    user.activity_log.append(entry)
    user.last_activity_date = now
    trim_activity_log(user)
    return entry


def recent_activity(user: User, limit: int = 50, offset: int = 0) -> tuple[list[ActivityEntry], bool]:
    """Newest-first page of the log and whether more entries follow."""
    ordered = sorted(user.activity_log, key=lambda e: e.timestamp, reverse=True)
    page = ordered[offset:offset + limit]
    return page, len(ordered) > offset + limit


def activity_counts(user: User, now: datetime | None = None) -> dict[str, int]:
    now = now or datetime.now()
    today = start_of_day(now)
    week_ago = now - timedelta(days=7)
    return {
        "activities_today": sum(1 for e in user.activity_log if start_of_day(e.timestamp) == today),
        "activities_this_week": sum(1 for e in user.activity_log if e.timestamp >= week_ago),
        "total_activities": len(user.activity_log),
    }
