"""Smoke tests for Pydantic models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from neural_nexus.models.goal import Goal, GoalCategory, GoalStatus, normalize_goal
from neural_nexus.models.progress import Achievement, ActivityAction, ActivityEntry, ProgressStats
from neural_nexus.models.user import User
from neural_nexus.progress.normalize import normalize_user


class TestUser:
    def test_defaults(self, make_user):
        user = make_user()
        assert len(user.id) == 32
        assert user.progress_stats == ProgressStats()
        assert user.activity_log == []
        assert user.preferences.email_notifications is True

    def test_email_is_lowercased(self, make_user):
        assert make_user(email="  Alice@Example.COM ").email == "alice@example.com"

    def test_invalid_email(self, make_user):
        with pytest.raises(ValidationError):
            make_user(email="not-an-email")

    @pytest.mark.parametrize("name", ["ab", "x" * 51])
    def test_name_length(self, make_user, name):
        with pytest.raises(ValidationError):
            make_user(name=name)

    def test_public_dict_hides_password(self, make_user):
        data = make_user().public_dict()
        assert "password_hash" not in data
        assert data["progress_stats"]["level"] == 1

    def test_roundtrip_through_json(self, make_user):
        user = make_user()
        user.activity_log.append(ActivityEntry(action=ActivityAction.LOGIN, metadata={"ip": "::1"}))
        restored = User.model_validate_json(user.model_dump_json())
        assert restored.activity_log[0].action == ActivityAction.LOGIN
        assert restored.activity_log[0].metadata == {"ip": "::1"}


class TestNormalizeUser:
    def test_carries_overflowing_experience(self, make_user):
        user = make_user()
        user.progress_stats.experience = 260
        normalize_user(user)
        assert (user.progress_stats.level, user.progress_stats.experience) == (3, 10)

    def test_longest_streak_floor(self, make_user):
        user = make_user()
        user.progress_stats.current_streak = 4
        normalize_user(user)
        assert user.progress_stats.longest_streak == 4

    def test_duplicate_achievements_keep_first(self, make_user):
        first = Achievement(id="welcome", name="Welcome", description="a", earned_at=datetime(2026, 1, 1))
        again = Achievement(id="welcome", name="Welcome", description="b")
        user = make_user(achievements=[first, again])
        normalize_user(user)
        assert user.achievements == [first]


class TestGoal:
    def test_defaults(self):
        goal = Goal(user_id="u" * 32, description="Learn Python")
        assert goal.status == GoalStatus.PENDING
        assert goal.category == GoalCategory.GENERAL
        assert goal.has_curriculum is False

    def test_empty_description(self):
        with pytest.raises(ValidationError):
            Goal(user_id="u" * 32, description="")

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            Goal(user_id="u" * 32, description="x", category="cooking")

    def test_normalize_completion_timestamp(self):
        goal = Goal(user_id="u" * 32, description="x", status=GoalStatus.COMPLETED)
        normalize_goal(goal)
        assert goal.completed_at == goal.updated_at

        goal.status = GoalStatus.IN_PROGRESS
        normalize_goal(goal)
        assert goal.completed_at is None

    def test_blank_curriculum_is_not_a_curriculum(self):
        goal = Goal(user_id="u" * 32, description="x", curriculum="  ")
        assert normalize_goal(goal).has_curriculum is False

    def test_display_names(self):
        assert GoalCategory.DESIGN.display_name == "UI/UX Design"
        assert all(c.display_name for c in GoalCategory)
