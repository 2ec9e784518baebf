"""
api/routes/v1/rpc.py -- Single-endpoint method dispatch.

POST /rpc with {"method": "<area>::<verb>", "param": {...}} runs the same
operation as the matching REST route. param is checked against the method's
request shape by api.validation.validate(); a ValidationFailure becomes the
usual 400 invalid_argument envelope. Unknown methods answer 404
endpoint_not_found, exactly like an unknown REST path.

Methods and their param shapes:
  role::list     {}
  role::create   {role: RoleInput}         {role: {name}}
  role::get      IdParam                   {id}
  role::update   {role: RoleUpdate}        {role: {id, name}}
  role::delete   IdParam                   {id}
  user::list     {}
  user::create   {user: UserInput}         {user: {name, password}}
  user::get      IdParam                   {id}
  user::update   {user: UserUpdate}        {user: {id, name, password}}
  user::delete   IdParam                   {id}
  auth::login    LoginInput                {username, password}
  auth::verify   TokenInput                {token}

Create and update nest the entity under "role" or "user"; an update carries
the id inside the entity. Successful calls return the operation's raw result;
deletes return {}.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api import operations
from api.context import AppContext, get_context
from api.errors import EndpointNotFoundError, InvalidArgumentError
from api.models import (
    IdParam,
    LoginInput,
    RoleInput,
    RoleUpdate,
    RpcRequest,
    TokenInput,
    UserInput,
    UserUpdate,
)
from api.validation import ValidationFailure, validate, validate_entity

logger = logging.getLogger("rolekeeper.api")

router = APIRouter()

# method -> (param shape or None, entity key or None, handler(ctx, validated_param))
_Handler = Callable[[AppContext, Any], Optional[BaseModel]]

_METHODS: dict[str, tuple[Optional[type[BaseModel]], Optional[str], _Handler]] = {
    "role::list": (None, None, lambda ctx, _: operations.list_roles(ctx)),
    "role::create": (RoleInput, "role", operations.create_role),
    "role::get": (IdParam, None, lambda ctx, p: operations.get_role(ctx, p.id)),
    "role::update": (RoleUpdate, "role", lambda ctx, p: operations.update_role(ctx, p.id, p)),
    "role::delete": (IdParam, None, lambda ctx, p: operations.delete_role(ctx, p.id)),
    "user::list": (None, None, lambda ctx, _: operations.list_users(ctx)),
    "user::create": (UserInput, "user", operations.create_user),
    "user::get": (IdParam, None, lambda ctx, p: operations.get_user(ctx, p.id)),
    "user::update": (UserUpdate, "user", lambda ctx, p: operations.update_user(ctx, p.id, p)),
    "user::delete": (IdParam, None, lambda ctx, p: operations.delete_user(ctx, p.id)),
    "auth::login": (LoginInput, None, operations.login),
    "auth::verify": (TokenInput, None, operations.verify),
}


@router.post("/rpc")
def call(body: RpcRequest, ctx: AppContext = Depends(get_context)) -> JSONResponse:
    """Dispatch body.method with body.param."""
    entry = _METHODS.get(body.method)
    if entry is None:
        raise EndpointNotFoundError(f"unknown method: {body.method}")
    shape, key, handler = entry

    param: Any = None
    if shape is not None:
        param = validate(body.param, shape) if key is None else validate_entity(body.param, key, shape)
        if isinstance(param, ValidationFailure):
            raise InvalidArgumentError(param.describe())

    logger.debug("rpc %s", body.method)
    result = handler(ctx, param)
    content = result.model_dump() if result is not None else {}
    headers = {"Cache-Control": "no-store"} if body.method.startswith("auth::") else None
    return JSONResponse(status_code=200, content=content, headers=headers)
