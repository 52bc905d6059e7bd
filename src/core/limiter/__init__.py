from collections.abc import Awaitable, Callable
from math import ceil

from fastapi import Request, Response
from redis.asyncio import Redis
from redis.exceptions import RedisError

from loggers import get_logger
from src.core.errors.exceptions import TooManyRequestsException
from src.core.limiter.script import lua_script
from src.main.config import config

logger = get_logger(__name__)

Identifier = Callable[[Request], Awaitable[str]]
LimitCallback = Callable[[Request, Response, int], Awaitable[None]]


def client_ip(request: Request) -> str:
    if config.app.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def default_identifier(request: Request) -> str:
    """Rate-limit bucket per client IP and route path."""
    return f"{client_ip(request)}:{request.scope['path']}"


async def http_default_callback(
    request: Request, response: Response, pexpire: int
) -> None:
    raise TooManyRequestsException(retry_after=max(1, ceil(pexpire / 1000)))


class FastAPILimiter:
    """
    Process-wide rate limiter state.

    Initialized once in the application lifespan with the shared Redis client.
    The counting script is loaded up front and called by its SHA afterwards.
    """

    redis: Redis | None = None
    prefix: str = "limiter"
    lua_sha: str | None = None
    lua_script: str = lua_script
    identifier: Identifier = default_identifier
    http_callback: LimitCallback = http_default_callback

    @classmethod
    async def init(
        cls,
        redis_client: Redis,
        prefix: str | None = None,
        identifier: Identifier | None = None,
        http_callback: LimitCallback | None = None,
    ) -> None:
        cls.redis = redis_client
        cls.prefix = prefix or cls.prefix
        cls.identifier = identifier or cls.identifier
        cls.http_callback = http_callback or cls.http_callback
        try:
            cls.lua_sha = await redis_client.script_load(cls.lua_script)
        except RedisError as e:
            # Requests are served unthrottled until the script loads on demand
            logger.error("[RateLimiter] Failed to load counting script: %s", e)
            cls.lua_sha = None
        logger.info("[RateLimiter] Initialized with prefix '%s'.", cls.prefix)

    @classmethod
    def reset(cls) -> None:
        """Forget the Redis client; the connection itself is owned by the lifespan."""
        cls.redis = None
        cls.lua_sha = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls.redis is not None
