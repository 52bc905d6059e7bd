from fastapi import FastAPI
from redis.exceptions import RedisError

from loggers import get_logger
from src.core.redis.core import create_redis_client
from src.core.utils.retry import call_with_retries

logger = get_logger("redis")

STARTUP_PING_ATTEMPTS = 3
STARTUP_PING_DELAY_SECONDS = 1


async def on_redis_startup(app: FastAPI, connection_url: str) -> None:
    """
    Connect to Redis and publish the client on app.state.

    Startup fails if the server does not answer a ping after a few attempts,
    since rate limiting and webhook de-duplication both depend on it.
    """
    redis_client = create_redis_client(connection_url)
    try:
        await call_with_retries(
            redis_client.ping,
            max_retries=STARTUP_PING_ATTEMPTS,
            delay=STARTUP_PING_DELAY_SECONDS,
            retry_on=(RedisError, OSError),
            label="redis ping",
        )
    except (RedisError, OSError):
        await redis_client.aclose()
        raise
    app.state.redis_client = redis_client
    logger.info("Redis client connected.")


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is None:
        return
    await redis_client.aclose()
    app.state.redis_client = None
    logger.info("Redis client closed.")
