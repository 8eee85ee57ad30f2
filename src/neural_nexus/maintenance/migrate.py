"""Backfill progress data on stored user documents.

Brings older documents up to date with the goal store: completed-goal
totals, starter achievements, experience floor and an initial activity
entry. Safe to run repeatedly.
"""

import argparse
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from neural_nexus.config import get_settings
from neural_nexus.errors import NeuralNexusError
from neural_nexus.models.goal import GoalStatus
from neural_nexus.models.progress import ActivityAction
from neural_nexus.models.user import User
from neural_nexus.progress.achievements import RULES, WELCOME, award_achievement
from neural_nexus.progress.activity import log_activity
from neural_nexus.progress.experience import normalize_level, total_experience
from neural_nexus.progress.normalize import normalize_user
from neural_nexus.storage.goals import GoalStore
from neural_nexus.storage.users import UserStore

logger = structlog.get_logger()

EXPERIENCE_PER_COMPLETED_GOAL = 50
FIRST_GOAL = next(rule for rule in RULES if rule.id == "first_goal")
MIGRATED = {"migrated_achievement": True}


@dataclass
class MigrationReport:
    migrated: int = 0
    errors: int = 0


def migrate_user(user: User, completed_goals: int, now: datetime | None = None) -> User:
    """Apply the backfill to one in-memory user."""
    now = now or datetime.now()
    stats = user.progress_stats
    stats.total_goals_completed = completed_goals

    if not user.achievements:
        award_achievement(user, WELCOME, user.created_at, metadata=MIGRATED)
    if completed_goals >= 1:
        award_achievement(user, FIRST_GOAL, now, metadata=MIGRATED)

    # Floor applies to lifetime experience, not the remainder within the level.
    base_experience = completed_goals * EXPERIENCE_PER_COMPLETED_GOAL
    if total_experience(stats.level, stats.experience) < base_experience:
        stats.level, stats.experience = 1, base_experience
    stats.level, stats.experience = normalize_level(stats.level, stats.experience)

    if not user.activity_log:
        log_activity(
            user,
            ActivityAction.ACCOUNT_MIGRATED,
            metadata={
                "migration_date": now.isoformat(),
                "original_created_at": user.created_at.isoformat(),
                "migrated_completed_goals": completed_goals,
            },
            now=now,
        )
    return user


def migrate_all(users: UserStore, goals: GoalStore) -> MigrationReport:
    report = MigrationReport()
    for user_id in users.iter_user_ids():
        try:
            with users.locked(user_id):
                user = users.load(user_id)
                completed = goals.count_by_user_and_status(user_id, GoalStatus.COMPLETED)
                migrate_user(user, completed)
                normalize_user(user)
                users.save(user)
        except NeuralNexusError as exc:
            report.errors += 1
            logger.error("user_migration_failed", user_id=user_id, error=exc.message)
            continue
        report.migrated += 1
        logger.info("user_migrated", user_id=user_id, completed_goals=completed)
    logger.info("migration_complete", migrated=report.migrated, errors=report.errors)
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Backfill progress data on user documents")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Storage root (defaults to the configured data directory)",
    )
    args = parser.parse_args(argv)

    if args.data_dir is not None:
        users = UserStore(args.data_dir / "users")
        goals = GoalStore(args.data_dir / "goals")
    else:
        settings = get_settings()
        users = UserStore(settings.users_dir)
        goals = GoalStore(settings.goals_dir)

    report = migrate_all(users, goals)
    return 1 if report.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
