"""
api/routes/v1/auth.py -- Login, token verification and identity endpoints.

Routes:
  POST /login          -- credentials -> signed token (public, rate limited;
                          built per app by login_router())
  POST /login:verify   -- token -> claims (public)
  GET  /me             -- current user from the Bearer token (requires auth)

Security:
  [H2] POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  [C1] AuthService.login() provides timing equalization -- use it, never inline
       the store lookup and bcrypt check here.
  [M5] Cache-Control: no-store on responses that carry a token or claims.
  Wrong username and wrong password return the same 401 body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from accounts.models import User
from api import operations
from api.context import AppContext, get_context
from api.dependencies import get_current_user
from api.models import ClaimsResponse, LoginInput, LoginResponse, MeResponse, TokenInput

router = APIRouter()


def _no_store(content: dict) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=content)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/login:verify", response_model=ClaimsResponse)
def verify_login(body: TokenInput, ctx: AppContext = Depends(get_context)) -> JSONResponse:
    """Verify a token and return the claims it carries."""
    return _no_store(operations.verify(ctx, body).model_dump())


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the bearer of the token."""
    return MeResponse(user_id=current_user.id, name=current_user.name)


def login_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Build the router for POST /login, limited to rate_limit per client IP.

    @router.post must wrap @limiter.limit so FastAPI registers the limited
    handler.
    """
    login_routes = APIRouter()

    @login_routes.post("/login", response_model=LoginResponse)
    @limiter.limit(rate_limit)  # [H2]
    def login(request: Request, body: LoginInput, ctx: AppContext = Depends(get_context)) -> JSONResponse:
        """Authenticate with username and password; return a bearer token."""
        return _no_store(operations.login(ctx, body).model_dump())

    return login_routes
