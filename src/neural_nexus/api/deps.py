"""FastAPI dependencies: stores, services and the authenticated user."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from neural_nexus.auth.security import TokenClaims, TokenService
from neural_nexus.config import Settings, get_settings
from neural_nexus.curriculum.generator import WebhookCurriculumGenerator
from neural_nexus.errors import AuthenticationError
from neural_nexus.progress.service import ProgressService
from neural_nexus.storage.goals import GoalStore
from neural_nexus.storage.users import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_store(settings: Settings = Depends(get_settings)) -> UserStore:
    return UserStore(settings.users_dir)


def get_goal_store(settings: Settings = Depends(get_settings)) -> GoalStore:
    return GoalStore(settings.goals_dir)


def get_progress_service(
    users: UserStore = Depends(get_user_store),
    goals: GoalStore = Depends(get_goal_store),
) -> ProgressService:
    return ProgressService(users, goals)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings.jwt_secret, settings.jwt_lifetime_days, settings.jwt_algorithm)


def get_curriculum_generator(settings: Settings = Depends(get_settings)) -> WebhookCurriculumGenerator:
    return WebhookCurriculumGenerator(settings.webhook_config)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    if credentials is None:
        raise AuthenticationError("Authentication invalid")
    return tokens.verify(credentials.credentials)


def track_session(
    request: Request,
    claims: TokenClaims = Depends(get_current_user),
    progress: ProgressService = Depends(get_progress_service),
) -> TokenClaims:
    """Authenticate and log a ``session_start`` when the user returns after idling."""
    progress.start_session(
        claims.user_id,
        {"user_agent": request.headers.get("user-agent")},
    )
    return claims
