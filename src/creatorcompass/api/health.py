"""Health check endpoint.

The database is required; Redis only backs rate limiting, so losing it
marks the service degraded rather than down. Uses the app's own Redis
client when the lifespan connected one, otherwise probes the URL.
"""

from fastapi import APIRouter
from sqlalchemy import text

from creatorcompass import __version__
from creatorcompass.config import settings
from creatorcompass.db.cache import get_redis
from creatorcompass.db.engine import engine

router = APIRouter()


async def _check_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return f"error: {e}"
    return "ok"


async def _check_redis() -> str:
    from redis.asyncio import from_url

    try:
        await get_redis().ping()
        return "ok"
    except RuntimeError:
        pass  # lifespan never connected; probe directly
    except Exception as e:
        return f"error: {e}"

    client = from_url(settings.redis_url)
    try:
        await client.ping()
    except Exception as e:
        return f"error: {e}"
    finally:
        await client.aclose()
    return "ok"


@router.get("/health")
async def health_check():
    database = await _check_database()
    redis = await _check_redis()

    if database != "ok":
        status = "unhealthy"
    elif redis != "ok":
        status = "degraded"
    else:
        status = "healthy"

    return {
        "status": status,
        "server": "ok",
        "version": __version__,
        "database": database,
        "redis": redis,
    }
