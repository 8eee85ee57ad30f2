"""Learning goal models."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class GoalStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    PAUSED = "paused"


class GoalCategory(StrEnum):
    """Closed set of goal categories."""

    WEB_DEVELOPMENT = "web-development"
    DATA_SCIENCE = "data-science"
    MOBILE_DEVELOPMENT = "mobile-development"
    DEVOPS = "devops"
    DESIGN = "design"
    BUSINESS = "business"
    LANGUAGE = "language"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]


CATEGORY_DISPLAY_NAMES: dict[GoalCategory, str] = {
    GoalCategory.WEB_DEVELOPMENT: "Web Development",
    GoalCategory.DATA_SCIENCE: "Data Science",
    GoalCategory.MOBILE_DEVELOPMENT: "Mobile Development",
    GoalCategory.DEVOPS: "DevOps",
    GoalCategory.DESIGN: "UI/UX Design",
    GoalCategory.BUSINESS: "Business",
    GoalCategory.LANGUAGE: "Programming Language",
    GoalCategory.GENERAL: "General",
}


class GoalPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Goal(BaseModel):
    """A learning goal owned by one user."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    description: str = Field(min_length=1)
    status: GoalStatus = GoalStatus.PENDING
    category: GoalCategory = GoalCategory.GENERAL
    priority: GoalPriority = GoalPriority.MEDIUM
    target_date: datetime | None = None
    curriculum: str | None = None
    has_curriculum: bool = False
    curriculum_generated_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == GoalStatus.COMPLETED


def normalize_goal(goal: Goal) -> Goal:
    """Derive stored flags from content. Called before every goal save."""
    goal.has_curriculum = bool(goal.curriculum and goal.curriculum.strip())
    if not goal.has_curriculum:
        goal.curriculum_generated_at = None
    if goal.is_completed and goal.completed_at is None:
        goal.completed_at = goal.updated_at
    elif not goal.is_completed:
        goal.completed_at = None
    return goal
