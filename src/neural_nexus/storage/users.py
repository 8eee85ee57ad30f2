"""User document persistence (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import pydantic
import structlog

from neural_nexus.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from neural_nexus.models.user import User

logger = structlog.get_logger()

EMAIL_INDEX_FILENAME = "_emails.json"
REGISTRY_LOCK_FILENAME = "_registry.lock"
_DOCUMENT_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def validate_document_id(doc_id: str, kind: str = "user") -> str:
    if not _DOCUMENT_ID_RE.match(doc_id or ""):
        raise ValidationError(f"Invalid {kind} ID format")
    return doc_id


@contextmanager
def _exclusive_lock(path: Path) -> Iterator[None]:
    with open(path, "w") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def _atomic_write_json(path: Path, data: object) -> None:
    with tempfile.NamedTemporaryFile("w", dir=path.parent, delete=False, suffix=".json") as tmp:
        json.dump(data, tmp, default=str)
    os.replace(tmp.name, path)


class UserStore:
    """One JSON document per user under ``users_dir``.

    Whole-document reads and writes only. ``locked()`` serializes
    read-modify-write cycles on a single user across threads and processes.
    """

    def __init__(self, users_dir: Path):
        self.users_dir = users_dir
        self.users_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        return self.users_dir / f"{validate_document_id(user_id)}.json"

    def _lock_path(self, user_id: str) -> Path:
        return self.users_dir / f"{validate_document_id(user_id)}.lock"

    @property
    def _index_path(self) -> Path:
        return self.users_dir / EMAIL_INDEX_FILENAME

    def exists(self, user_id: str) -> bool:
        return self._path(user_id).exists()

    def load(self, user_id: str) -> User:
        path = self._path(user_id)
        if not path.exists():
            raise NotFoundError("User not found", user_id=user_id)
        try:
            with open(path) as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                data = json.load(f)
                fcntl.flock(f, fcntl.LOCK_UN)
            return User(**data)
        except (OSError, ValueError, pydantic.ValidationError) as exc:
            logger.exception("user_load_failed", user_id=user_id)
            raise PersistenceError("Failed to load user", user_id=user_id) from exc

    def save(self, user: User) -> None:
        user.updated_at = datetime.now()
        try:
            _atomic_write_json(self._path(user.id), user.model_dump(mode="json"))
        except OSError as exc:
            logger.exception("user_save_failed", user_id=user.id)
            raise PersistenceError("Failed to save user", user_id=user.id) from exc

    @contextmanager
    def locked(self, user_id: str) -> Iterator[None]:
        """Hold the per-user exclusive lock for a read-modify-write cycle."""
        with _exclusive_lock(self._lock_path(user_id)):
            yield

    @contextmanager
    def registry_lock(self) -> Iterator[None]:
        """Guard the email index. Always taken before any per-user lock."""
        with _exclusive_lock(self.users_dir / REGISTRY_LOCK_FILENAME):
            yield

    def _read_index(self) -> dict[str, str]:
        if not self._index_path.exists():
            return {}
        try:
            return json.loads(self._index_path.read_text())
        except (OSError, ValueError) as exc:
            raise PersistenceError("Failed to read email index") from exc

    def _write_index(self, index: dict[str, str]) -> None:
        try:
            _atomic_write_json(self._index_path, index)
        except OSError as exc:
            raise PersistenceError("Failed to write email index") from exc

    def ensure_email_available(self, email: str, user_id: str | None = None) -> None:
        """Raise ConflictError if ``email`` belongs to another user. Call under registry_lock()."""
        owner = self._read_index().get(email.strip().lower())
        if owner is not None and owner != user_id:
            raise ConflictError("Email already exists")

    def reindex_email(self, old_email: str | None, user: User) -> None:
        """Point the index at ``user.email``. Call under registry_lock()."""
        index = self._read_index()
        if old_email and index.get(old_email) == user.id:
            del index[old_email]
        index[user.email] = user.id
        self._write_index(index)

    def create(self, user: User) -> User:
        """Persist a brand-new user, enforcing email uniqueness."""
        with self.registry_lock():
            self.ensure_email_available(user.email)
            if self.exists(user.id):
                raise ConflictError("User already exists")
            self.save(user)
            self.reindex_email(None, user)
        logger.info("user_created", user_id=user.id)
        return user

    def find_by_email(self, email: str) -> User | None:
        user_id = self._read_index().get(email.strip().lower())
        if user_id is None or not self.exists(user_id):
            return None
        return self.load(user_id)

    def iter_user_ids(self) -> Iterator[str]:
        for path in sorted(self.users_dir.glob("*.json")):
            if _DOCUMENT_ID_RE.match(path.stem):
                yield path.stem
