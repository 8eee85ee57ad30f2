"""Smoke tests for the user and goal stores."""

import json
from datetime import datetime

import pytest

from neural_nexus.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from neural_nexus.models.goal import Goal, GoalStatus


class TestUserStore:
    def test_create_and_load(self, user_store, make_user):
        user = user_store.create(make_user())
        loaded = user_store.load(user.id)
        assert loaded.email == "alice@example.com"
        assert loaded.id == user.id
        assert user_store.find_by_email("ALICE@example.com").id == user.id

    def test_duplicate_email(self, user_store, make_user):
        user_store.create(make_user())
        with pytest.raises(ConflictError):
            user_store.create(make_user(name="alice2"))

    def test_load_missing(self, user_store):
        with pytest.raises(NotFoundError):
            user_store.load("0" * 32)

    def test_rejects_path_like_ids(self, user_store):
        with pytest.raises(ValidationError):
            user_store.load("../../etc/passwd")

    def test_corrupt_document(self, user_store, make_user):
        user = user_store.create(make_user())
        (user_store.users_dir / f"{user.id}.json").write_text("{not json")
        with pytest.raises(PersistenceError):
            user_store.load(user.id)

    def test_save_is_whole_document_json(self, user_store, make_user):
        user = user_store.create(make_user())
        user.progress_stats.experience = 42
        user_store.save(user)
        data = json.loads((user_store.users_dir / f"{user.id}.json").read_text())
        assert data["progress_stats"]["experience"] == 42
        assert list(user_store.iter_user_ids()) == [user.id]


class TestGoalStore:
    def test_create_and_find(self, goal_store):
        owner = "1" * 32
        goal = goal_store.create(Goal(user_id=owner, description="Learn Rust"))
        goal_store.create(Goal(user_id=owner, description="Learn Go", status=GoalStatus.COMPLETED))
        assert len(goal_store.find_by_user(owner)) == 2
        assert goal_store.count_by_user_and_status(owner, GoalStatus.COMPLETED) == 1
        assert goal_store.get(goal.id, owner).description == "Learn Rust"

    def test_find_by_user_without_goals(self, goal_store):
        assert goal_store.find_by_user("2" * 32) == []

    def test_other_users_goal_is_forbidden(self, goal_store):
        goal = goal_store.create(Goal(user_id="1" * 32, description="mine"))
        with pytest.raises(AuthorizationError):
            goal_store.get(goal.id, "2" * 32)

    def test_missing_goal(self, goal_store):
        with pytest.raises(NotFoundError):
            goal_store.get("3" * 32, "1" * 32)

    def test_save_derives_has_curriculum(self, goal_store):
        goal = goal_store.create(Goal(user_id="1" * 32, description="x"))
        assert goal.has_curriculum is False
        goal.curriculum = "Week 1: basics"
        goal_store.save(goal)
        assert goal_store.get(goal.id, "1" * 32).has_curriculum is True

    def test_delete(self, goal_store):
        goal = goal_store.create(Goal(user_id="1" * 32, description="x"))
        goal_store.delete(goal)
        with pytest.raises(NotFoundError):
            goal_store.get(goal.id, "1" * 32)

    def test_create_uses_given_time(self, goal_store):
        created = datetime(2026, 3, 2, 9, 0)
        goal = goal_store.create(Goal(user_id="1" * 32, description="x"), now=created)
        stored = goal_store.get(goal.id, "1" * 32)
        assert stored.created_at == stored.updated_at == created
