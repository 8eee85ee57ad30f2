"""Profile, progress, activity and achievement routes for the current user."""

from collections import Counter
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, JsonValue

from neural_nexus.api.deps import get_goal_store, get_progress_service, get_user_store, track_session
from neural_nexus.auth.security import TokenClaims
from neural_nexus.models.goal import GoalStatus
from neural_nexus.models.progress import ActivityAction
from neural_nexus.progress.activity import activity_counts, recent_activity
from neural_nexus.progress.daily_stats import stats_window
from neural_nexus.progress.report import build_progress_report
from neural_nexus.progress.service import ProgressService
from neural_nexus.storage.goals import GoalStore
from neural_nexus.storage.users import UserStore

router = APIRouter(prefix="/api/user", tags=["user"])


class ProfileUpdate(BaseModel):
    name: str | None = None
    email: str | None = None


class PasswordChange(BaseModel):
    current_password: str = ""
    new_password: str = ""


class PreferencesUpdate(BaseModel):
    email_notifications: bool | None = None
    weekly_reports: bool | None = None
    achievement_notifications: bool | None = None


class ActivityReport(BaseModel):
    action: str = ""
    goal_id: str | None = None
    time_spent: int = 0
    metadata: dict[str, JsonValue] = Field(default_factory=dict)


@router.get("/profile")
def get_profile(
    claims: TokenClaims = Depends(track_session),
    users: UserStore = Depends(get_user_store),
    goals: GoalStore = Depends(get_goal_store),
) -> dict:
    user = users.load(claims.user_id)
    by_status = Counter(g.status for g in goals.find_by_user(claims.user_id))
    stats = {status.value: by_status.get(status, 0) for status in GoalStatus}
    stats["total"] = sum(by_status.values())
    return {"user": user.public_dict(), "stats": stats}


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    claims: TokenClaims = Depends(track_session),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    user = progress.update_profile(claims.user_id, name=body.name, email=body.email)
    return {"user": {"id": user.id, "name": user.name, "email": user.email}}


@router.put("/change-password")
def change_password(
    body: PasswordChange,
    claims: TokenClaims = Depends(track_session),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    progress.change_password(claims.user_id, body.current_password, body.new_password)
    return {"message": "Password updated successfully"}


@router.put("/preferences")
def update_preferences(
    body: PreferencesUpdate,
    claims: TokenClaims = Depends(track_session),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    preferences = progress.update_preferences(claims.user_id, **body.model_dump())
    return {"preferences": preferences.model_dump()}


@router.get("/dashboard")
def get_dashboard(
    claims: TokenClaims = Depends(track_session),
    goals: GoalStore = Depends(get_goal_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    """Recent goals, per-category and per-status counts, and deadlines in the next week."""
    all_goals = goals.find_by_user(claims.user_id)
    now = progress.clock()
    horizon = now + timedelta(days=7)

    categories: dict[str, dict[str, int]] = {}
    for goal in all_goals:
        entry = categories.setdefault(goal.category.value, {"count": 0, "completed": 0})
        entry["count"] += 1
        entry["completed"] += int(goal.is_completed)

    upcoming = sorted(
        (
            g for g in all_goals
            if g.target_date and now <= g.target_date <= horizon and not g.is_completed
        ),
        key=lambda g: g.target_date,
    )[:5]

    progress.track(claims.user_id, ActivityAction.DASHBOARD_VIEWED)
    return {
        "recent_goals": [g.model_dump(mode="json") for g in all_goals[:5]],
        "category_stats": categories,
        "status_stats": dict(Counter(g.status.value for g in all_goals)),
        "upcoming_deadlines": [g.model_dump(mode="json") for g in upcoming],
    }


@router.get("/progress")
def get_progress(
    claims: TokenClaims = Depends(track_session),
    users: UserStore = Depends(get_user_store),
    goals: GoalStore = Depends(get_goal_store),
) -> dict:
    user = users.load(claims.user_id)
    return build_progress_report(user, goals.find_by_user(claims.user_id))


@router.get("/daily-stats")
def get_daily_stats(
    days: int = Query(default=30, ge=1, le=90),
    claims: TokenClaims = Depends(track_session),
    users: UserStore = Depends(get_user_store),
) -> dict:
    return stats_window(users.load(claims.user_id), days)


@router.get("/activity")
def get_activity(
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    claims: TokenClaims = Depends(track_session),
    users: UserStore = Depends(get_user_store),
) -> dict:
    user = users.load(claims.user_id)
    activities, has_more = recent_activity(user, limit, offset)
    return {
        "activities": [a.model_dump(mode="json") for a in activities],
        "stats": activity_counts(user),
        "last_login_date": user.last_login_date,
        "last_activity_date": user.last_activity_date,
        "has_more": has_more,
    }


@router.post("/activity")
def log_activity(
    body: ActivityReport,
    claims: TokenClaims = Depends(track_session),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    summary = progress.log_client_activity(
        claims.user_id,
        body.action,
        goal_id=body.goal_id,
        time_spent=body.time_spent,
        metadata=body.metadata,
    )
    return {
        "experience_gained": summary.experience_gained,
        "leveled_up": summary.leveled_up,
        "new_level": summary.level,
        "new_achievements": summary.new_achievements,
    }


@router.get("/achievements")
def get_achievements(
    claims: TokenClaims = Depends(track_session),
    users: UserStore = Depends(get_user_store),
    progress: ProgressService = Depends(get_progress_service),
) -> dict:
    new_achievements = progress.check_achievements(claims.user_id)
    user = users.load(claims.user_id)
    achievements = sorted(user.achievements, key=lambda a: a.earned_at, reverse=True)
    return {
        "achievements": [a.model_dump(mode="json") for a in achievements],
        "new_achievements": new_achievements,
        "total_achievements": len(achievements),
    }
