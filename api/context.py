"""
api/context.py -- The per-process application context.

AppContext is built once in the lifespan from the Settings passed to
create_app(), stored on app.state.context, and handed to route handlers by the
get_context() dependency. It replaces ambient globals: the store connection
pool and the signing secret are reachable only through this object.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from accounts.store import AccountStore
from auth.passwords import PasswordHasher
from auth.service import AuthService
from core.config import Settings


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    store: AccountStore
    hasher: PasswordHasher
    auth: AuthService

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Open the store and build the auth service. Raises if the database is unreachable."""
        store = AccountStore(settings.database_url, timeout=settings.store_timeout_seconds)
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        auth = AuthService(
            store,
            hasher,
            settings.secret_key,
            token_expire_seconds=settings.token_expire_seconds,
        )
        return cls(settings=settings, store=store, hasher=hasher, auth=auth)

    def close(self) -> None:
        self.store.close()


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the AppContext built at startup."""
    return request.app.state.context
