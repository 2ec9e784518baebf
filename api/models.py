"""
API request and response models for RoleKeeper REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in accounts/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Request shapes are strict: a number is not accepted where a string is
required and vice versa. Unknown keys are ignored.

Separation of concerns: domain models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Passwords are truncated to 72 bytes by bcrypt; the cap only stops abuse.
_Password = Annotated[str, Field(min_length=1, max_length=255)]
_Name = Annotated[str, Field(min_length=1, max_length=255)]


class _Shape(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


# ---------------------------------------------------------------------------
# Request shapes
# ---------------------------------------------------------------------------


class RoleInput(_Shape):
    """Body for POST /roles and PUT /roles/{id}."""

    name: _Name


class UserInput(_Shape):
    """Body for POST /users and PUT /users/{id}. password is hashed before storage."""

    name: _Name
    password: _Password


class LoginInput(_Shape):
    """Body for POST /login."""

    username: _Name
    password: _Password


class TokenInput(_Shape):
    """Body for POST /login:verify."""

    token: str = Field(min_length=1)


# RPC-only shapes: the id travels in the param object instead of the path.


class IdParam(_Shape):
    id: int


class RoleUpdate(RoleInput):
    id: int


class UserUpdate(UserInput):
    id: int


class RpcRequest(BaseModel):
    """Body for POST /rpc. param is validated per method by api.validation.validate()."""

    model_config = ConfigDict(strict=True)

    method: str = Field(min_length=1)
    param: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RoleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class RolesResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    roles: list[RoleResponse]


class UserResponse(BaseModel):
    """A user as clients see it. There is no password or hash field, by construction."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class UsersResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    users: list[UserResponse]


class LoginResponse(BaseModel):
    """Response for POST /login.

    expires_in is None when tokens are issued without an exp claim.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class ClaimsResponse(BaseModel):
    """Response for POST /login:verify -- the decoded token claims."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    data: dict[str, Any]
    expires_at: Optional[int] = None


class MeResponse(BaseModel):
    """Response for GET /me."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    name: str


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
