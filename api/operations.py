"""
api/operations.py -- Operation bodies shared by the REST routes and the RPC endpoint.

Each function takes the AppContext and an already-validated request shape,
calls the store / auth service, and returns a response model. Failures are
raised as ApiError subclasses and reach the client through api.errors.

None of these functions are async: they hash passwords and block on the
database, so FastAPI runs the calling handlers in its thread pool.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from accounts.models import Role, User
from api.context import AppContext
from api.errors import ConflictError, NotFoundError, UnauthorizedError
from api.models import (
    ClaimsResponse,
    LoginInput,
    LoginResponse,
    RoleInput,
    RoleResponse,
    RolesResponse,
    TokenInput,
    UserInput,
    UserResponse,
    UsersResponse,
)
from auth.models import AuthFailure

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


def list_roles(ctx: AppContext) -> RolesResponse:
    return RolesResponse(roles=[_role_to_response(r) for r in ctx.store.list_roles()])


def create_role(ctx: AppContext, body: RoleInput) -> RoleResponse:
    try:
        role = ctx.store.create_role(body.name)
    except IntegrityError as exc:
        raise ConflictError("role name is already taken") from exc
    return _role_to_response(role)


def get_role(ctx: AppContext, role_id: int) -> RoleResponse:
    role = ctx.store.get_role(role_id)
    if role is None:
        raise NotFoundError("role not found")
    return _role_to_response(role)


def update_role(ctx: AppContext, role_id: int, body: RoleInput) -> RoleResponse:
    try:
        role = ctx.store.update_role(role_id, body.name)
    except IntegrityError as exc:
        raise ConflictError("role name is already taken") from exc
    if role is None:
        raise NotFoundError("role not found")
    return _role_to_response(role)


def delete_role(ctx: AppContext, role_id: int) -> None:
    if not ctx.store.delete_role(role_id):
        raise NotFoundError("role not found")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def list_users(ctx: AppContext) -> UsersResponse:
    return UsersResponse(users=[_user_to_response(u) for u in ctx.store.list_users()])


def create_user(ctx: AppContext, body: UserInput) -> UserResponse:
    hashed = ctx.hasher.hash(body.password)
    try:
        user = ctx.store.create_user(body.name, hashed)
    except IntegrityError as exc:
        raise ConflictError("user name is already taken") from exc
    return _user_to_response(user)


def get_user(ctx: AppContext, user_id: int) -> UserResponse:
    user = ctx.store.find_user_by_id(user_id)
    if user is None:
        raise NotFoundError("user not found")
    return _user_to_response(user)


def update_user(ctx: AppContext, user_id: int, body: UserInput) -> UserResponse:
    hashed = ctx.hasher.hash(body.password)
    try:
        user = ctx.store.update_user(user_id, body.name, hashed)
    except IntegrityError as exc:
        raise ConflictError("user name is already taken") from exc
    if user is None:
        raise NotFoundError("user not found")
    return _user_to_response(user)


def delete_user(ctx: AppContext, user_id: int) -> None:
    if not ctx.store.delete_user(user_id):
        raise NotFoundError("user not found")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def login(ctx: AppContext, body: LoginInput) -> LoginResponse:
    """Exchange credentials for a token.

    Unknown user and wrong password raise the identical UnauthorizedError.
    """
    result = ctx.auth.login(body.username, body.password)
    if isinstance(result, AuthFailure):
        raise UnauthorizedError()
    expires_in = ctx.auth.token_expire_seconds or None
    return LoginResponse(token=result, expires_in=expires_in)


def verify(ctx: AppContext, body: TokenInput) -> ClaimsResponse:
    claims = ctx.auth.verify_token(body.token)
    if isinstance(claims, AuthFailure):
        raise UnauthorizedError()
    return ClaimsResponse(
        user_id=claims.user_id,
        username=claims.username,
        data=claims.data,
        expires_at=claims.expires_at,
    )


# ---------------------------------------------------------------------------
# Mappers
# ---------------------------------------------------------------------------


def _role_to_response(role: Role) -> RoleResponse:
    return RoleResponse(id=role.id, name=role.name)


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.name)
