"""Invariants restored on a user document right before it is written."""

from neural_nexus.auth.security import hash_password, is_password_hash
from neural_nexus.models.user import User
from neural_nexus.progress.activity import trim_activity_log
from neural_nexus.progress.daily_stats import DAILY_STATS_LIMIT
from neural_nexus.progress.experience import normalize_level


def normalize_user(user: User) -> User:
    """Make ``user`` safe to persist.

    - the password field holds a bcrypt hash, never plaintext
    - experience sits below the threshold of the current level
    - activity log and daily stats respect their retention bounds
    - achievement ids are unique (first grant wins)
    - longest streak is at least the current streak
    """
    if not is_password_hash(user.password_hash):
        user.password_hash = hash_password(user.password_hash)

    stats = user.progress_stats
    stats.level, stats.experience = normalize_level(stats.level, stats.experience)
    stats.longest_streak = max(stats.longest_streak, stats.current_streak)

    trim_activity_log(user)
    if len(user.daily_stats) > DAILY_STATS_LIMIT:
        user.daily_stats = user.daily_stats[-DAILY_STATS_LIMIT:]

    seen = set()
    unique = []
    for achievement in user.achievements:
        if achievement.id not in seen:
            seen.add(achievement.id)
            unique.append(achievement)
    user.achievements = unique
    return user
