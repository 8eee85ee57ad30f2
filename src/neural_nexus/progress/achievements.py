"""Achievement rules and their evaluation against user and goal state.

Each rule grants a badge at most once per user. Rules are independent of
one another: a single evaluation pass grants every badge whose condition
holds and that the user does not already have, in table order.

``welcome`` and ``three_day_streak`` are not part of the table. The first
is granted at registration; the second only on the first login of a day,
when the streak is exactly three (see ``ProgressService.login``).
"""

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

import structlog
from pydantic import JsonValue

from neural_nexus.models.goal import Goal, GoalCategory
from neural_nexus.models.progress import Achievement
from neural_nexus.models.user import User
from neural_nexus.progress.streak import calculate_streak

logger = structlog.get_logger()

SPECIALIST_THRESHOLD = 3


@dataclass(frozen=True)
class AchievementContext:
    """Snapshot of the state the rules are evaluated against."""

    completed_goals: int
    streak: int
    completed_by_category: dict[GoalCategory, int]


@dataclass(frozen=True)
class AchievementRule:
    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[AchievementContext], bool]


WELCOME = AchievementRule(
    id="welcome",
    name="Welcome to Neural Nexus",
    description="Successfully created your account and started your learning journey",
    icon="star",
    condition=lambda ctx: True,
)

THREE_DAY_STREAK = AchievementRule(
    id="three_day_streak",
    name="3 Day Streak",
    description="Maintained a 3-day login streak",
    icon="fire",
    condition=lambda ctx: ctx.streak == 3,
)

RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        id="first_goal",
        name="First Goal Completed",
        description="Completed your first learning goal",
        icon="trophy",
        condition=lambda ctx: ctx.completed_goals >= 1,
    ),
    AchievementRule(
        id="week_streak",
        name="7 Day Streak",
        description="Maintained a 7-day learning streak",
        icon="fire",
        condition=lambda ctx: ctx.streak >= 7,
    ),
    AchievementRule(
        id="month_streak",
        name="30 Day Streak",
        description="Maintained a 30-day learning streak",
        icon="fire",
        condition=lambda ctx: ctx.streak >= 30,
    ),
    AchievementRule(
        id="five_goals",
        name="Goal Achiever",
        description="Completed 5 learning goals",
        icon="star",
        condition=lambda ctx: ctx.completed_goals >= 5,
    ),
    AchievementRule(
        id="ten_goals",
        name="Learning Master",
        description="Completed 10 learning goals",
        icon="crown",
        condition=lambda ctx: ctx.completed_goals >= 10,
    ),
)


def specialist_rule(category: GoalCategory) -> AchievementRule:
    return AchievementRule(
        id=f"{category.value}_specialist",
        name=f"{category.display_name} Specialist",
        description=f"Completed {SPECIALIST_THRESHOLD} goals in {category.display_name}",
        icon="medal",
        condition=lambda ctx: ctx.completed_by_category.get(category, 0) >= SPECIALIST_THRESHOLD,
    )


def award_achievement(
    user: User,
    rule: AchievementRule,
    now: datetime | None = None,
    metadata: dict[str, JsonValue] | None = None,
) -> bool:
    """Append the badge for ``rule`` unless ``user`` already holds it.

    Returns:
        True if a new achievement was added.
    """
    if user.has_achievement(rule.id):
        return False
    user.achievements.append(
        Achievement(
            id=rule.id,
            name=rule.name,
            description=rule.description,
            icon=rule.icon,
            earned_at=now or datetime.now(),
            metadata=dict(metadata or {}),
        )
    )
    logger.info("achievement_awarded", user_id=user.id, achievement_id=rule.id)
    return True


def build_context(user: User, goals: Iterable[Goal], now: datetime | None = None) -> AchievementContext:
    completed = [g for g in goals if g.is_completed]
    return AchievementContext(
        completed_goals=len(completed),
        streak=calculate_streak(user, now),
        completed_by_category=dict(Counter(g.category for g in completed)),
    )


def rules_for(context: AchievementContext) -> list[AchievementRule]:
    """Fixed rules followed by one specialist rule per completed category."""
    rules = list(RULES)
    rules.extend(specialist_rule(category) for category in context.completed_by_category)
    return rules


def evaluate_achievements(
    user: User,
    goals: Iterable[Goal],
    now: datetime | None = None,
) -> list[str]:
    """Grant every eligible badge the user does not hold yet.

    Recomputes the streak as a side effect. Idempotent for unchanged state.

    Returns:
        Display names of the newly granted achievements, in rule order.
    """
    now = now or datetime.now()
    context = build_context(user, goals, now)
    granted = []
    for rule in rules_for(context):
        if rule.condition(context) and award_achievement(user, rule, now):
            granted.append(rule.name)
    return granted
