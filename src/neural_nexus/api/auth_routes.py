"""Registration and login."""

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from neural_nexus.api.deps import get_progress_service, get_token_service
from neural_nexus.auth.security import TokenService
from neural_nexus.progress.service import ProgressService

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


def _client_metadata(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    request: Request,
    progress: ProgressService = Depends(get_progress_service),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Create an account and return a session token."""
    user, summary = progress.register(
        body.name,
        body.email,
        body.password,
        metadata={"user_agent": request.headers.get("user-agent")},
    )
    return {
        "user": {
            "name": user.name,
            "email": user.email,
            "level": summary.level,
            "experience": summary.experience,
        },
        "token": tokens.issue(user.id, user.name),
        "new_achievements": summary.new_achievements,
    }


@router.post("/login")
def login(
    body: LoginRequest,
    request: Request,
    progress: ProgressService = Depends(get_progress_service),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Verify credentials, apply login rewards and return a session token."""
    user, summary = progress.login(body.email, body.password, _client_metadata(request))
    return {
        "user": {
            "name": user.name,
            "email": user.email,
            "level": summary.level,
            "experience": summary.experience,
            "streak": summary.streak,
        },
        "token": tokens.issue(user.id, user.name),
        "new_achievements": summary.new_achievements,
    }
