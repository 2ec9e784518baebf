"""
api/errors.py -- Error taxonomy and the single translator to the error envelope.

Every outward failure has the same shape:

    HTTP <status>
    {"error": {"code": "<stable code>", "description": "<text>"}}

translate() maps an internal failure -- an ApiError raised by a route, a typed
AuthFailure / ValidationFailure result, a framework exception, or any other
exception -- to a ServerError. install_exception_handlers() registers one
FastAPI handler per exception family; each handler calls translate() and
builds exactly one JSONResponse, so a response is never written twice.

Codes:
  endpoint_not_found     404  no route matched the request path
  invalid_argument       400  request payload or path parameter failed validation
  unauthorized           401  bad credentials or bad token (cause never disclosed)
  not_found              404  the addressed role/user does not exist
  already_exists         409  unique name already taken
  rate_limited           429  slowapi limit hit
  http_<status>          any  other framework HTTP errors (e.g. 405)
  internal_server_error  500  anything unexpected
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.validation import ValidationFailure, failure_from_errors
from auth.models import AuthFailure

logger = logging.getLogger("rolekeeper.api")

_GENERIC_INTERNAL = "internal server error"


# ---------------------------------------------------------------------------
# Exceptions raised by route handlers
# ---------------------------------------------------------------------------


class ApiError(Exception):
    """Base for failures a route raises on purpose.

    Subclasses fix code and status; description defaults to a short fixed
    message and may be overridden per raise.
    """

    code = "internal_server_error"
    status_code = 500
    default_description = _GENERIC_INTERNAL

    def __init__(self, description: Optional[str] = None) -> None:
        self.description = description or self.default_description
        super().__init__(self.description)


class InvalidArgumentError(ApiError):
    code = "invalid_argument"
    status_code = 400
    default_description = "invalid argument"


class UnauthorizedError(ApiError):
    code = "unauthorized"
    status_code = 401
    default_description = "authentication failed"


class NotFoundError(ApiError):
    code = "not_found"
    status_code = 404
    default_description = "not found"


class ConflictError(ApiError):
    code = "already_exists"
    status_code = 409
    default_description = "already exists"


class EndpointNotFoundError(ApiError):
    code = "endpoint_not_found"
    status_code = 404
    default_description = "endpoint not found"


# ---------------------------------------------------------------------------
# Envelope models
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    description: str


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class ServerError(BaseModel):
    """Canonical outward failure: stable code, HTTP status, description."""

    model_config = ConfigDict(frozen=True)

    code: str
    status: int
    description: str

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status,
            content=ErrorResponse(error=ErrorDetail(code=self.code, description=self.description)).model_dump(),
        )


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


def translate(failure: object, expose_details: bool = True) -> ServerError:
    """Map any internal failure to its ServerError.

    expose_details controls only the 500 branch: when true the description
    carries the stringified cause for operators; when false it is generic.
    """
    if isinstance(failure, ApiError):
        return ServerError(code=failure.code, status=failure.status_code, description=failure.description)
    if isinstance(failure, AuthFailure):
        # reason is deliberately dropped -- see auth.service
        return translate(UnauthorizedError())
    if isinstance(failure, ValidationFailure):
        return translate(InvalidArgumentError(failure.describe()))
    if isinstance(failure, RequestValidationError):
        return translate(failure_from_errors(failure.errors()))
    if isinstance(failure, RateLimitExceeded):
        return ServerError(code="rate_limited", status=429, description=f"too many requests: {failure.detail}")
    if isinstance(failure, StarletteHTTPException):
        if failure.status_code == 404:
            return translate(EndpointNotFoundError())
        return ServerError(
            code=f"http_{failure.status_code}",
            status=failure.status_code,
            description=str(failure.detail),
        )
    description = _GENERIC_INTERNAL
    if expose_details:
        description = f"{_GENERIC_INTERNAL}: {failure}"
    return ServerError(code="internal_server_error", status=500, description=description)


def retry_after(exc: RateLimitExceeded) -> int:
    """Seconds a client should wait: the length of the window that was exceeded."""
    return exc.limit.limit.get_expiry()


# ---------------------------------------------------------------------------
# FastAPI wiring
# ---------------------------------------------------------------------------


def install_exception_handlers(app: FastAPI, expose_details: bool = True) -> None:
    """Route every exception family through translate().

    Handlers are registered on the Starlette HTTPException (not FastAPI's
    subclass) so unmatched routes, which Starlette raises itself, are caught
    too.
    """

    async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return translate(exc, expose_details).to_response()

    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        response = translate(exc, expose_details).to_response()
        response.headers["Retry-After"] = str(retry_after(exc))
        return response

    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return translate(exc, expose_details).to_response()

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, api_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(StarletteHTTPException, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
