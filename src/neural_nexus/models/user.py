"""User document: account fields plus the progress aggregate."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from neural_nexus.models.progress import (
    Achievement,
    ActivityEntry,
    DailyStatEntry,
    Preferences,
    ProgressStats,
)


def new_user_id() -> str:
    return uuid.uuid4().hex


class User(BaseModel):
    """One per account, persisted as a single JSON document."""

    id: str = Field(default_factory=new_user_id)
    name: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password_hash: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    progress_stats: ProgressStats = Field(default_factory=ProgressStats)
    activity_log: list[ActivityEntry] = Field(default_factory=list)
    last_login_date: datetime | None = None
    last_activity_date: datetime | None = None
    achievements: list[Achievement] = Field(default_factory=list)
    daily_stats: list[DailyStatEntry] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.strip().lower()

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.id == achievement_id for a in self.achievements)

    def public_dict(self) -> dict:
        """Serializable view without credentials."""
        return self.model_dump(mode="json", exclude={"password_hash"})
