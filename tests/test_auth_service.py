"""Unit tests for auth/service.py -- login and token verification.

Uses an in-memory credential store so the service is tested without SQL.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import pytest

from auth.models import AuthFailure, Claims
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.tokens import decode_token, encode_token

SECRET = "k" * 48


@dataclass
class _Record:
    id: int
    name: str
    hashed_password: str


class FakeStore:
    def __init__(self, *records: _Record) -> None:
        self.by_name = {r.name: r for r in records}
        self.lookups: list[str] = []

    def find_user_by_name(self, name: str) -> Optional[_Record]:
        self.lookups.append(name)
        return self.by_name.get(name)

    def find_user_by_id(self, user_id: int) -> Optional[_Record]:
        return next((r for r in self.by_name.values() if r.id == user_id), None)


class CountingHasher(PasswordHasher):
    """PasswordHasher that records how many times verify() ran."""

    def __init__(self) -> None:
        super().__init__(rounds=4)
        self.verify_calls = 0

    def verify(self, plain: str, hashed: str) -> bool:
        self.verify_calls += 1
        return super().verify(plain, hashed)


@pytest.fixture
def hasher() -> CountingHasher:
    return CountingHasher()


@pytest.fixture
def store(hasher: CountingHasher) -> FakeStore:
    return FakeStore(_Record(id=42, name="alice", hashed_password=hasher.hash("correct-horse")))


@pytest.fixture
def service(store: FakeStore, hasher: CountingHasher) -> AuthService:
    return AuthService(store, hasher, SECRET, token_expire_seconds=3600)


class TestLogin:
    def test_valid_credentials_return_token(self, service: AuthService) -> None:
        token = service.login("alice", "correct-horse")
        assert isinstance(token, str) and token

    def test_token_claims_identify_user(self, service: AuthService) -> None:
        token = service.login("alice", "correct-horse")
        claims = decode_token(token, SECRET)
        assert claims.user_id == 42
        assert claims.username == "alice"
        assert claims.data == {"user": {"id": 42, "name": "alice"}}

    def test_token_carries_configured_expiry(self, service: AuthService) -> None:
        before = int(time.time())
        claims = decode_token(service.login("alice", "correct-horse"), SECRET)
        assert before + 3600 - 5 <= claims.expires_at <= before + 3600 + 5

    def test_zero_expiry_omits_exp(self, store: FakeStore, hasher: CountingHasher) -> None:
        service = AuthService(store, hasher, SECRET, token_expire_seconds=0)
        claims = decode_token(service.login("alice", "correct-horse"), SECRET)
        assert claims.expires_at is None

    def test_wrong_password_fails(self, service: AuthService) -> None:
        assert isinstance(service.login("alice", "wrong-horse"), AuthFailure)

    def test_unknown_user_fails(self, service: AuthService) -> None:
        assert isinstance(service.login("mallory", "anything"), AuthFailure)

    def test_failures_are_indistinguishable_by_type(self, service: AuthService) -> None:
        unknown = service.login("nonexistent-user", "anything")
        wrong = service.login("alice", "wrong-password")
        assert type(unknown) is type(wrong) is AuthFailure

    def test_unknown_user_still_runs_bcrypt(self, service: AuthService, hasher: CountingHasher) -> None:
        """Timing equalization: a verify() runs even when the user does not exist."""
        hasher.verify_calls = 0
        service.login("nobody", "anything")
        assert hasher.verify_calls == 1

    def test_store_errors_propagate(self, hasher: CountingHasher) -> None:
        """A store outage is not an authentication failure."""

        class BrokenStore(FakeStore):
            def find_user_by_name(self, name: str):
                raise ConnectionError("database unreachable")

        service = AuthService(BrokenStore(), hasher, SECRET)
        with pytest.raises(ConnectionError):
            service.login("alice", "correct-horse")


class TestVerifyToken:
    def test_login_then_verify(self, service: AuthService) -> None:
        claims = service.verify_token(service.login("alice", "correct-horse"))
        assert isinstance(claims, Claims)
        assert claims.user_id == 42

    def test_garbage_token_fails(self, service: AuthService) -> None:
        result = service.verify_token("not-a-token")
        assert isinstance(result, AuthFailure)
        assert result.reason == "invalid_token"

    def test_token_from_other_secret_fails(self, service: AuthService) -> None:
        foreign = encode_token(Claims(user_id=42, username="alice"), "z" * 48)
        assert isinstance(service.verify_token(foreign), AuthFailure)

    def test_expired_token_fails(self, service: AuthService) -> None:
        expired = encode_token(Claims(user_id=42, username="alice", expires_at=int(time.time()) - 1), SECRET)
        assert isinstance(service.verify_token(expired), AuthFailure)


def test_empty_secret_refused(store: FakeStore, hasher: CountingHasher) -> None:
    with pytest.raises(ValueError):
        AuthService(store, hasher, "")
