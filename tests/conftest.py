"""Shared fixtures: stores on tmp_path, a controllable clock, and users."""

from datetime import datetime, timedelta

import pytest

from neural_nexus.config import Settings
from neural_nexus.models.user import User
from neural_nexus.progress.service import ProgressService
from neural_nexus.storage.goals import GoalStore
from neural_nexus.storage.users import UserStore

# Looks like a bcrypt hash so normalization leaves it alone; never verified.
FAKE_HASH = "$2b$10$" + "a" * 53


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def make_user():
    def _make_user(**overrides) -> User:
        data = {"name": "alice", "email": "alice@example.com", "password_hash": FAKE_HASH}
        data.update(overrides)
        return User(**data)
    return _make_user


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
def user_store(tmp_path):
    return UserStore(tmp_path / "users")


@pytest.fixture
def goal_store(tmp_path):
    return GoalStore(tmp_path / "goals")


@pytest.fixture
def service(user_store, goal_store, clock):
    return ProgressService(user_store, goal_store, clock=clock)


@pytest.fixture
def settings(tmp_path):
    return Settings(jwt_secret="test-secret", data_dir=tmp_path / "data")
