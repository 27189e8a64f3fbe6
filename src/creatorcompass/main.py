"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Each instance owns its
own SSE connection registries (app.state.notification_streams and
app.state.analytics_streams), so two apps in one process never share
stream state. Lifespan manages Redis and the database engine.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from creatorcompass import __version__
from creatorcompass.api import api_router
from creatorcompass.config import settings
from creatorcompass.events.types import CHANNEL_ANALYTICS, CHANNEL_NOTIFICATIONS
from creatorcompass.log import configure_logging
from creatorcompass.realtime.connections import ConnectionManager

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "creatorcompass.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from creatorcompass.db.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("creatorcompass.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis only backs rate limiting; run without it
        logger.warning("creatorcompass.redis_unavailable", error=str(e))

    yield

    logger.info("creatorcompass.shutdown")
    await close_redis()

    from creatorcompass.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(
        settings.log_level,
        json_logs=settings.log_json or settings.environment == "production",
    )

    app = FastAPI(
        title="CreatorCompass API",
        description="Notifications, analytics, and live event streams for CreatorCompass",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Real-time state (process-local, per app instance) ────
    app.state.notification_streams = ConnectionManager(CHANNEL_NOTIFICATIONS)
    app.state.analytics_streams = ConnectionManager(CHANNEL_ANALYTICS)
    app.state.sse_heartbeat_seconds = settings.sse_heartbeat_seconds

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from creatorcompass.middleware.rate_limit import RateLimitMiddleware
    from creatorcompass.middleware.request_id import RequestIdMiddleware
    from creatorcompass.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: creatorcompass.main:app)
app = create_app()
