"""
auth/service.py -- Login and token verification orchestration.

AuthService ties the credential store, the password hasher and the token codec
together. Both entry points return a typed result (the value or AuthFailure)
instead of raising, so the route layer has to handle the failure branch.

Security:
  [C1] Timing equalization: login() always runs bcrypt, against a dummy hash
       when the username does not exist. An attacker cannot enumerate
       usernames by measuring response time.

  Opacity: unknown user, wrong password and every token failure come back as
       AuthFailure. The reason field is logged here and dropped by the API
       layer, which answers every AuthFailure with the same 401.

  Store and hashing faults are not collapsed: they propagate and surface as a
       500, because they are not authentication failures.

Layer rule: no imports from api/ or accounts/. The store is consumed through
the CredentialStore protocol; core/ is not imported -- the secret and expiry
are constructor arguments.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

from auth.models import AuthFailure, Claims
from auth.passwords import PasswordHasher
from auth.tokens import InvalidTokenError, decode_token, encode_token

logger = logging.getLogger("rolekeeper.auth")


class UserRecord(Protocol):
    id: int | None
    name: str
    hashed_password: str


class CredentialStore(Protocol):
    """The two lookups the auth service needs from persistence."""

    def find_user_by_name(self, name: str) -> UserRecord | None: ...

    def find_user_by_id(self, user_id: int) -> UserRecord | None: ...


class AuthService:
    """Issues tokens for valid credentials and verifies presented tokens.

    Usage:
        auth = AuthService(store, PasswordHasher(12), secret_key, token_expire_seconds=3600)
        result = auth.login("alice", "correct-horse")
        if isinstance(result, AuthFailure):
            ...
        claims = auth.verify_token(result)
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        secret_key: str,
        token_expire_seconds: int = 0,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key cannot be empty")
        self._store = store
        self._hasher = hasher
        self._secret_key = secret_key
        self.token_expire_seconds = token_expire_seconds
        # Same cost factor as real hashes so both login branches take equal time.
        self._dummy_hash = hasher.hash("rolekeeper-timing-dummy")

    def login(self, username: str, password: str) -> str | AuthFailure:
        """Check credentials and return a signed token, or AuthFailure."""
        user = self._store.find_user_by_name(username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self._hasher.verify(password, self._dummy_hash)
            return self._fail("unknown_user")
        if not self._hasher.verify(password, user.hashed_password):
            return self._fail("bad_password")
        logger.info("Login succeeded for user_id=%s", user.id)
        return encode_token(self._claims_for(user), self._secret_key)

    def verify_token(self, token: str) -> Claims | AuthFailure:
        """Decode token and return its Claims, or AuthFailure on any defect."""
        try:
            return decode_token(token, self._secret_key)
        except InvalidTokenError:
            return self._fail("invalid_token")

    def _claims_for(self, user: UserRecord) -> Claims:
        expires_at = None
        if self.token_expire_seconds > 0:
            expire = datetime.now(timezone.utc) + timedelta(seconds=self.token_expire_seconds)
            expires_at = int(expire.timestamp())
        return Claims(
            user_id=user.id,
            username=user.name,
            data={"user": {"id": user.id, "name": user.name}},
            expires_at=expires_at,
        )

    @staticmethod
    def _fail(reason: str) -> AuthFailure:
        logger.info("Authentication failed (%s)", reason)
        return AuthFailure(reason=reason)
