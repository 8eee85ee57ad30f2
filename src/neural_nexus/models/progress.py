"""Progress-tracking data models embedded in the user document."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class ActivityAction(StrEnum):
    """Kinds of tracked user actions."""

    LOGIN = "login"
    REGISTRATION = "registration"
    SESSION_START = "session_start"
    API_USAGE = "api_usage"
    GOAL_CREATED = "goal_created"
    GOAL_COMPLETED = "goal_completed"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOAL_VIEWED = "goal_viewed"
    CURRICULUM_VIEWED = "curriculum_viewed"
    CURRICULUM_GENERATED = "curriculum_generated"
    PROFILE_UPDATED = "profile_updated"
    DASHBOARD_VIEWED = "dashboard_viewed"
    SETTINGS_UPDATED = "settings_updated"
    PASSWORD_CHANGED = "password_changed"
    ACCOUNT_MIGRATED = "account_migrated"


class ActivityEntry(BaseModel):
    """A single timestamped action in the activity log."""

    action: ActivityAction
    goal_id: str | None = None  # weak reference, may dangle after deletion
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)


class Achievement(BaseModel):
    """A one-time badge, keyed by ``id``."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str = "trophy"
    earned_at: datetime = Field(default_factory=datetime.now)
    metadata: dict[str, JsonValue] = Field(default_factory=dict)


class DailyStatEntry(BaseModel):
    """Per-calendar-day rollup. ``date`` is always local midnight."""

    date: datetime
    goals_created: int = Field(default=0, ge=0)
    goals_completed: int = Field(default=0, ge=0)
    curriculums_viewed: int = Field(default=0, ge=0)
    time_spent: int = Field(default=0, ge=0)  # minutes


class ProgressStats(BaseModel):
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    total_goals_completed: int = Field(default=0, ge=0)
    total_learning_time: int = Field(default=0, ge=0)  # minutes
    longest_streak: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)


class Preferences(BaseModel):
    email_notifications: bool = True
    weekly_reports: bool = True
    achievement_notifications: bool = True


class ProgressSummary(BaseModel):
    """What every tracked action hands back to the caller for rendering."""

    level: int
    experience: int
    streak: int
    new_achievements: list[str] = Field(default_factory=list)
    experience_gained: int = 0
    leveled_up: bool = False
