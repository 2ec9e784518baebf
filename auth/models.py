"""
auth/models.py -- Value objects for authentication results.

Pattern: Data class (pure data container, zero logic). Both classes are frozen
so a decoded Claims compares equal to the Claims it was encoded from.

Layer rule: no imports from api/, accounts/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Claims:
    """Identity assertions carried inside a signed token.

    data is the opaque issued payload; the auth service puts the minimal user
    record there ({"user": {"id": ..., "name": ...}}). expires_at is a POSIX
    timestamp in whole seconds, or None for tokens without an exp claim.
    """

    user_id: int
    username: str
    data: dict[str, Any] = field(default_factory=dict)
    expires_at: int | None = None


@dataclass(frozen=True)
class AuthFailure:
    """Typed failure result of AuthService.login() / verify_token().

    reason is for server-side logging only ("unknown_user", "bad_password",
    "invalid_token"). It must never be copied into a response -- the API layer
    turns every AuthFailure into the same 401 envelope.
    """

    reason: str
