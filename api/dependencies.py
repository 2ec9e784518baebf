"""
api/dependencies.py -- FastAPI Depends() helpers for authentication.

Clients authenticate with an Authorization: Bearer <token> header carrying a
token from POST /login. get_current_user() verifies it through the auth
service and then reloads the user by id, so a token for a deleted user stops
working even though tokens themselves are stateless.
"""

from __future__ import annotations

from fastapi import Depends, Request

from accounts.models import User
from api.context import AppContext, get_context
from api.errors import UnauthorizedError
from auth.models import AuthFailure


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request, ctx: AppContext = Depends(get_context)) -> User:
    """Require a valid bearer token. Raises UnauthorizedError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = bearer_token(request)
    if token is None:
        raise UnauthorizedError()
    claims = ctx.auth.verify_token(token)
    if isinstance(claims, AuthFailure):
        raise UnauthorizedError()
    user = ctx.store.find_user_by_id(claims.user_id)
    if user is None:
        raise UnauthorizedError()
    return user
