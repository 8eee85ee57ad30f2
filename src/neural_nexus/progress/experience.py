"""Experience accumulation and the level curve."""

import structlog

from neural_nexus.errors import ValidationError
from neural_nexus.models.user import User

logger = structlog.get_logger()

BASE_LEVEL_EXPERIENCE = 100
EXPERIENCE_PER_LEVEL = 50


def experience_needed(level: int) -> int:
    """Points needed to clear ``level``: 100, 150, 200, ..."""
    return BASE_LEVEL_EXPERIENCE + (level - 1) * EXPERIENCE_PER_LEVEL


def normalize_level(level: int, experience: int) -> tuple[int, int]:
    """Carry surplus experience into levels until it fits under the threshold."""
    level = max(level, 1)
    experience = max(experience, 0)
    while experience >= experience_needed(level):
        experience -= experience_needed(level)
        level += 1
    return level, experience


def add_experience(user: User, points: int) -> bool:
    """Add experience to ``user`` in place.

    Args:
        user: User document to mutate.
        points: Non-negative number of points.

    Returns:
        True if at least one level was gained.
    """
    if points < 0:
        raise ValidationError("Experience points must be non-negative", points=points)
    if points == 0:
        return False

    stats = user.progress_stats
    old_level = stats.level
    stats.level, stats.experience = normalize_level(stats.level, stats.experience + points)

    leveled_up = stats.level > old_level
    if leveled_up:
        logger.info("level_up", user_id=user.id, old_level=old_level, new_level=stats.level)
    return leveled_up


def level_progress(level: int, experience: int) -> int:
    """Rounded percentage of the way through the current level."""
    return round(experience / experience_needed(level) * 100)


def experience_to_next_level(level: int, experience: int) -> int:
    return experience_needed(level) - experience


def total_experience(level: int, experience: int) -> int:
    """Lifetime points represented by ``level`` plus the remainder ``experience``."""
    return sum(experience_needed(n) for n in range(1, level)) + experience
