"""Background curriculum generation for newly created goals."""

import structlog
from fastapi.concurrency import run_in_threadpool

from neural_nexus.curriculum.generator import WebhookCurriculumGenerator
from neural_nexus.errors import NeuralNexusError, UpstreamError
from neural_nexus.progress.service import ProgressService
from neural_nexus.storage.goals import GoalStore

logger = structlog.get_logger()


def _store_curriculum(
    goal_id: str,
    user_id: str,
    text: str,
    goals: GoalStore,
    progress: ProgressService,
) -> None:
    # Reload: the goal may have been edited while the webhook ran.
    goal = goals.get(goal_id, user_id)
    goal.curriculum = text
    goal.curriculum_generated_at = progress.clock()
    goals.save(goal)
    progress.record_curriculum_generated(user_id, goal_id)


async def generate_curriculum_for_goal(
    goal_id: str,
    user_id: str,
    user_name: str,
    generator: WebhookCurriculumGenerator,
    goals: GoalStore,
    progress: ProgressService,
) -> bool:
    """Fetch a curriculum and attach it to the goal.

    Store and lock calls run in the threadpool, never on the event loop.
    Failures are logged and swallowed: the goal stays without a curriculum
    and nothing already applied for its creation is rolled back.

    Returns:
        True if a curriculum was stored.
    """
    try:
        goal = await run_in_threadpool(goals.get, goal_id, user_id)
    except NeuralNexusError as exc:
        logger.warning("curriculum_goal_unavailable", goal_id=goal_id, error=exc.message)
        return False

    try:
        text = await generator.generate(
            goal.description,
            {
                "user_id": user_id,
                "name": user_name,
                "category": goal.category.value,
                "priority": goal.priority.value,
            },
        )
    except UpstreamError as exc:
        logger.warning("curriculum_generation_failed", goal_id=goal_id, error=exc.message)
        return False

    try:
        await run_in_threadpool(_store_curriculum, goal_id, user_id, text, goals, progress)
    except NeuralNexusError as exc:
        logger.warning("curriculum_store_failed", goal_id=goal_id, error=exc.message)
        return False

    logger.info("curriculum_generated", goal_id=goal_id, length=len(text))
    return True
