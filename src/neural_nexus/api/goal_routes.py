"""Learning goal routes."""

from datetime import datetime

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel

from neural_nexus.api.deps import (
    get_curriculum_generator,
    get_goal_store,
    get_progress_service,
    track_session,
)
from neural_nexus.auth.security import TokenClaims
from neural_nexus.curriculum.generator import WebhookCurriculumGenerator
from neural_nexus.curriculum.tasks import generate_curriculum_for_goal
from neural_nexus.errors import NotFoundError, ValidationError
from neural_nexus.models.goal import Goal, GoalCategory, GoalPriority, GoalStatus
from neural_nexus.models.progress import ActivityAction
from neural_nexus.progress.service import ProgressService
from neural_nexus.storage.goals import GoalStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api/goals", tags=["goals"])


class GoalCreate(BaseModel):
    description: str | None = None
    category: GoalCategory = GoalCategory.GENERAL
    priority: GoalPriority = GoalPriority.MEDIUM
    target_date: datetime | None = None


class GoalUpdate(BaseModel):
    description: str | None = None
    status: GoalStatus | None = None
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    target_date: datetime | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_goal(
    body: GoalCreate,
    background_tasks: BackgroundTasks,
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
    generator: WebhookCurriculumGenerator = Depends(get_curriculum_generator),
) -> dict:
    """Create a goal, reward it, and queue curriculum generation."""
    description = (body.description or "").strip()
    if not description:
        raise ValidationError("Please add a goal description")

    goal = goals.create(
        Goal(
            user_id=claims.user_id,
            description=description,
            category=body.category,
            priority=body.priority,
            target_date=body.target_date,
        ),
        now=progress.clock(),
    )
    summary = progress.goal_created(claims.user_id, goal.id)

    if generator.config.enabled:
        background_tasks.add_task(
            generate_curriculum_for_goal,
            goal.id,
            claims.user_id,
            claims.name,
            generator,
            goals,
            progress,
        )
    else:
        logger.info("curriculum_webhook_disabled", goal_id=goal.id)

    return {
        "message": "Goal submitted successfully",
        "goal": goal.model_dump(mode="json"),
        "progress": summary.model_dump(),
    }


@router.get("")
def list_goals(
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
) -> list[dict]:
    return [g.model_dump(mode="json") for g in goals.find_by_user(claims.user_id)]


@router.get("/{goal_id}")
def get_goal(
    goal_id: str,
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    goal = goals.get(goal_id, claims.user_id)
    progress.track(claims.user_id, ActivityAction.GOAL_VIEWED, goal_id=goal.id)
    return goal.model_dump(mode="json")


@router.patch("/{goal_id}")
def update_goal(
    goal_id: str,
    body: GoalUpdate,
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    """Edit a goal. Moving it into ``completed`` triggers the completion rewards."""
    goal = goals.get(goal_id, claims.user_id)
    # target_date is the only field that may be cleared with null
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key == "target_date"
    }
    if "description" in changes:
        changes["description"] = changes["description"].strip()
        if not changes["description"]:
            raise ValidationError("Goal description cannot be empty")

    previous = goal.model_copy()
    for key, value in changes.items():
        setattr(goal, key, value)
    goal.updated_at = progress.clock()
    goals.save(goal)

    if goal.is_completed and not previous.is_completed:
        # The achievement rules read the saved goal; undo it if the rewards fail.
        try:
            summary = progress.goal_completed(claims.user_id, goal.id)
        except Exception:
            goals.save(previous)
            logger.warning("goal_completion_rolled_back", goal_id=goal.id)
            raise
    else:
        summary = progress.track(
            claims.user_id,
            ActivityAction.GOAL_UPDATED,
            goal_id=goal.id,
            metadata={"fields": sorted(changes)},
        )
    return {"goal": goal.model_dump(mode="json"), "progress": summary.model_dump()}


@router.delete("/{goal_id}")
def delete_goal(
    goal_id: str,
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    goal = goals.get(goal_id, claims.user_id)
    goals.delete(goal)
    summary = progress.track(claims.user_id, ActivityAction.GOAL_DELETED, goal_id=goal.id)
    return {"message": "Goal deleted", "progress": summary.model_dump()}


@router.get("/{goal_id}/curriculum")
def get_curriculum(
    goal_id: str,
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    goal = goals.get(goal_id, claims.user_id)
    if not goal.has_curriculum:
        raise NotFoundError("Curriculum not available yet", goal_id=goal_id)
    summary = progress.curriculum_viewed(claims.user_id, goal.id)
    return {
        "goal_id": goal.id,
        "goal_description": goal.description,
        "curriculum": goal.curriculum,
        "generated_at": goal.curriculum_generated_at,
        "progress": summary.model_dump(),
    }
