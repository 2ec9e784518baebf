"""
accounts/models.py -- Domain dataclasses for roles and users.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Role:
    """A named role. id is None before the record is written to the database."""

    name: str
    id: int | None = None


@dataclass
class User:
    """A local account with a bcrypt password hash.

    hashed_password is opaque to everything except auth.passwords. It is never
    logged and never copied into a response model.
    """

    name: str
    hashed_password: str
    id: int | None = None
