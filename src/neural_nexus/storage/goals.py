"""Goal persistence: one JSON file per goal, grouped by owner."""

import json
from datetime import datetime
from pathlib import Path

import pydantic
import structlog

from neural_nexus.errors import AuthorizationError, NotFoundError, PersistenceError
from neural_nexus.models.goal import Goal, GoalStatus, normalize_goal
from neural_nexus.storage.users import _atomic_write_json, validate_document_id

logger = structlog.get_logger()


class GoalStore:
    """Goals live at ``<goals_dir>/<user_id>/<goal_id>.json``."""

    def __init__(self, goals_dir: Path):
        self.goals_dir = goals_dir
        self.goals_dir.mkdir(parents=True, exist_ok=True)

    def _user_dir(self, user_id: str) -> Path:
        return self.goals_dir / validate_document_id(user_id)

    def _read(self, path: Path) -> Goal:
        try:
            return Goal(**json.loads(path.read_text()))
        except (OSError, ValueError, pydantic.ValidationError) as exc:
            logger.exception("goal_load_failed", path=str(path))
            raise PersistenceError("Failed to load goal") from exc

    def find_by_user(self, user_id: str) -> list[Goal]:
        """All goals of ``user_id``, newest first."""
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []
        goals = [self._read(path) for path in user_dir.glob("*.json")]
        return sorted(goals, key=lambda g: g.created_at, reverse=True)

    def count_by_user_and_status(self, user_id: str, status: GoalStatus) -> int:
        return sum(1 for g in self.find_by_user(user_id) if g.status == status)

    def get(self, goal_id: str, user_id: str) -> Goal:
        """Load a goal owned by ``user_id``.

        Raises:
            NotFoundError: No goal with this ID exists.
            AuthorizationError: The goal belongs to someone else.
        """
        validate_document_id(goal_id, kind="goal")
        own = self._user_dir(user_id) / f"{goal_id}.json"
        if own.exists():
            return self._read(own)
        if any(self.goals_dir.glob(f"*/{goal_id}.json")):
            raise AuthorizationError("Not authorized to access this goal", goal_id=goal_id)
        raise NotFoundError("Goal not found", goal_id=goal_id)

    def save(self, goal: Goal) -> Goal:
        normalize_goal(goal)
        user_dir = self._user_dir(goal.user_id)
        user_dir.mkdir(parents=True, exist_ok=True)
        try:
            _atomic_write_json(user_dir / f"{goal.id}.json", goal.model_dump(mode="json"))
        except OSError as exc:
            logger.exception("goal_save_failed", goal_id=goal.id)
            raise PersistenceError("Failed to save goal", goal_id=goal.id) from exc
        return goal

    def create(self, goal: Goal, now: datetime | None = None) -> Goal:
        goal.created_at = goal.updated_at = now or datetime.now()
        self.save(goal)
        logger.info("goal_created", goal_id=goal.id, user_id=goal.user_id)
        return goal

    def delete(self, goal: Goal) -> None:
        path = self._user_dir(goal.user_id) / f"{goal.id}.json"
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError("Failed to delete goal", goal_id=goal.id) from exc
