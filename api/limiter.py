"""
api/limiter.py -- slowapi rate limiter, one per application.

create_app() builds the Limiter from its Settings and stores it on
app.state.limiter, where SlowAPIMiddleware looks for it. Counters live in the
limiter's own memory:// storage, so two apps in one process never share
counts or settings.

Route-level limits are applied when a router is built (see
api.routes.v1.auth.login_router), because slowapi registers each limit on
the Limiter instance that decorates the handler.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    """Per-client-IP limiter honouring RATE_LIMIT_ENABLED."""
    return Limiter(
        key_func=get_remote_address,
        storage_uri="memory://",
        enabled=settings.rate_limit_enabled,
    )
