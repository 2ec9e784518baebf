"""
api/main.py -- FastAPI application factory for RoleKeeper.

create_app(settings) builds a fully wired app from an explicit Settings
object. Nothing in the request path reads configuration from the environment:
the lifespan turns the Settings into an AppContext (store, hasher, auth
service) and stores it on app.state.context.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests          -- one access log line per request, 500s included
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  3. CORSMiddleware        -- adds CORS headers for allowed browser origins
  4. SlowAPIMiddleware     -- applies the app's Limiter (app.state.limiter)

Startup faults (unreachable database) raise out of the lifespan, so the server
never starts accepting connections. A missing SECRET_KEY or DATABASE_URL
fails even earlier, when Settings is constructed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.middleware import SlowAPIMiddleware

from api.context import AppContext, get_context
from api.errors import install_exception_handlers
from api.limiter import build_limiter
from api.models import HealthResponse
from api.routes.v1.auth import login_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.roles import router as roles_router
from api.routes.v1.rpc import router as rpc_router
from api.routes.v1.users import router as users_router
from core.config import Settings, get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("rolekeeper.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def _make_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the store and build the auth service; close the store on shutdown.

        Everything before yield runs on startup; an exception here aborts
        startup before the server accepts connections.
        """
        logger.info("RoleKeeper API starting up")
        app.state.context = AppContext.from_settings(settings)
        logger.info(
            "Auth initialized (bcrypt_rounds=%d, token_expire_seconds=%d)",
            settings.bcrypt_rounds,
            settings.token_expire_seconds,
        )

        yield

        app.state.context.close()
        logger.info("RoleKeeper API shutdown complete")

    return lifespan


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Pattern: Interceptor. Every request passes through this coroutine before
# reaching any route handler; latency is measured around call_next.
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    # An exception escaping call_next becomes a 500 in ServerErrorMiddleware.
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            status_code,
            ms,
            request.client.host if request.client else "unknown",
        )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


def health(ctx: AppContext = Depends(get_context)) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    database = "ok" if ctx.store.ping() else "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the RoleKeeper FastAPI app.

    settings defaults to get_settings(), which raises a pydantic
    ValidationError when SECRET_KEY or DATABASE_URL is missing.
    """
    if settings is None:
        settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title="RoleKeeper API",
        description="Roles and users with stateless bearer-token authentication.",
        version=VERSION,
        lifespan=_make_lifespan(settings),
    )

    # add_middleware() wraps outermost-last, so register innermost first.
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.middleware("http")(log_requests)

    # SlowAPI looks for app.state.limiter by convention.
    limiter = build_limiter(settings)
    app.state.limiter = limiter

    install_exception_handlers(app, expose_details=settings.expose_error_details)

    app.include_router(login_router(limiter, settings.login_rate_limit), prefix="/api/v1", tags=["Auth"])
    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(roles_router, prefix="/api/v1", tags=["Roles"])
    app.include_router(users_router, prefix="/api/v1", tags=["Users"])
    app.include_router(rpc_router, prefix="/api/v1", tags=["RPC"])
    app.add_api_route("/api/v1/health", health, methods=["GET"], response_model=HealthResponse, tags=["Health"])

    return app
