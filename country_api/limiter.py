"""Per-route rate limiting, active only when ``REDIS_URL`` is configured."""
import logging

from fastapi import Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import Redis

from country_api.config import settings

logger = logging.getLogger("country_api")


async def init_rate_limiting() -> bool:
    if not settings.REDIS_URL:
        logger.info("Rate limiting not enabled; REDIS_URL not set")
        return False
    try:
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(redis)
    except Exception:
        logger.warning("Failed to initialize Redis rate limiter; continuing without limits", exc_info=True)
        return False
    logger.info("Rate limiting enabled via Redis at %s", settings.REDIS_URL)
    return True


async def close_rate_limiting() -> None:
    if FastAPILimiter.redis is not None:
        await FastAPILimiter.close()


def rate_limit(times: int, seconds: int):
    """Return a dependency enforcing ``times`` calls per ``seconds``.

    It is a no-op until ``init_rate_limiting`` has connected to Redis.
    """
    limiter = RateLimiter(times=times, seconds=seconds)

    async def _limit(request: Request, response: Response):
        if FastAPILimiter.redis is None:
            return None
        await limiter(request, response)

    return Depends(_limit)
