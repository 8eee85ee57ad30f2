"""Password hashing and signed session tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
import structlog

from neural_nexus.errors import AuthenticationError, ValidationError

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 10
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def is_password_hash(value: str) -> bool:
    return value.startswith(_BCRYPT_PREFIXES) and len(value) == 60


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not is_password_hash(password_hash):
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    name: str


class TokenService:
    """Issues and verifies HS256 session tokens.

    Args:
        secret: Signing secret.
        lifetime_days: Token expiry.
        algorithm: JWT signing algorithm.
    """

    def __init__(self, secret: str, lifetime_days: int = 30, algorithm: str = "HS256"):
        self.secret = secret
        self.lifetime = timedelta(days=lifetime_days)
        self.algorithm = algorithm

    def issue(self, user_id: str, name: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "name": name,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as exc:
            logger.warning("token_verification_failed", error=str(exc))
            raise AuthenticationError("Authentication invalid") from exc

        user_id = payload.get("userId")
        if not user_id:
            raise AuthenticationError("Authentication invalid")
        return TokenClaims(user_id=user_id, name=payload.get("name", ""))
