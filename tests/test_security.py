"""Tests for password hashing and session tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from neural_nexus.auth.security import (
    TokenService,
    hash_password,
    is_password_hash,
    verify_password,
)
from neural_nexus.errors import AuthenticationError, ValidationError
from neural_nexus.progress.normalize import normalize_user


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!")
        assert is_password_hash(hashed)
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_too_short(self):
        with pytest.raises(ValidationError):
            hash_password("abc")

    def test_plaintext_is_never_a_match(self):
        assert not verify_password("plaintext", "plaintext")

    def test_normalize_hashes_plaintext(self, make_user):
        user = make_user(password_hash="plain-password")
        normalize_user(user)
        assert is_password_hash(user.password_hash)
        assert verify_password("plain-password", user.password_hash)


class TestTokenService:
    def test_issue_and_verify(self):
        tokens = TokenService("secret", lifetime_days=1)
        claims = tokens.verify(tokens.issue("a" * 32, "alice"))
        assert claims.user_id == "a" * 32
        assert claims.name == "alice"

    def test_wrong_secret(self):
        token = TokenService("one").issue("a" * 32, "alice")
        with pytest.raises(AuthenticationError):
            TokenService("two").verify(token)

    def test_expired(self):
        past = datetime.now(timezone.utc) - timedelta(days=2)
        token = jwt.encode(
            {"userId": "a" * 32, "name": "alice", "exp": past},
            "secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            TokenService("secret").verify(token)

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            TokenService("secret").verify("not-a-token")
