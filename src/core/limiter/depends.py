from typing import Any

from fastapi import Request, Response
from redis.exceptions import NoScriptError, RedisError

from loggers import get_logger
from src.core.limiter import FastAPILimiter, Identifier, LimitCallback

logger = get_logger(__name__)


class RateLimiter:
    """
    Route dependency that throttles requests with a fixed window counter.

    Usage:
        dependencies=[Depends(RateLimiter(times=10, minutes=1))]

    When Redis is unreachable the request is let through and the failure is
    logged, so an outage of the limiter never takes the API down with it.
    """

    def __init__(
        self,
        times: int = 1,
        milliseconds: int = 0,
        seconds: int = 0,
        minutes: int = 0,
        hours: int = 0,
        identifier: Identifier | None = None,
        callback: LimitCallback | None = None,
    ) -> None:
        if times < 1:
            raise ValueError("Rate limiter must allow at least one request.")
        self.times = times
        self.milliseconds = (
            milliseconds + 1000 * seconds + 60_000 * minutes + 3_600_000 * hours
        )
        if self.milliseconds <= 0:
            raise ValueError("Rate limiter window must be greater than 0ms.")
        self.identifier = identifier
        self.callback = callback

    async def _run_script(self, key: str) -> int:
        redis = FastAPILimiter.redis
        if redis is None:
            return 0
        if FastAPILimiter.lua_sha is None:
            FastAPILimiter.lua_sha = await redis.script_load(FastAPILimiter.lua_script)
        result: Any = await redis.evalsha(
            FastAPILimiter.lua_sha, 1, key, str(self.times), str(self.milliseconds)
        )
        return int(result)

    async def _check_limit(self, key: str) -> int:
        """Return 0 when the request fits the window, otherwise the remaining ms."""
        try:
            try:
                return await self._run_script(key)
            except NoScriptError:
                # Script cache was flushed on the server
                FastAPILimiter.lua_sha = None
                return await self._run_script(key)
        except RedisError as e:
            logger.error("[RateLimiter] Redis unavailable, skipping limit: %s", e)
            return 0

    async def __call__(self, request: Request, response: Response) -> None:
        if not FastAPILimiter.is_initialized():
            logger.warning("[RateLimiter] Limiter is not initialized, skipping.")
            return

        identifier = self.identifier or FastAPILimiter.identifier
        callback = self.callback or FastAPILimiter.http_callback
        rate_key = await identifier(request)
        endpoint_name = request.scope["endpoint"].__name__
        key = f"{FastAPILimiter.prefix}:{rate_key}:{endpoint_name}"

        pexpire = await self._check_limit(key)
        if pexpire != 0:
            logger.warning(
                "[RateLimiter] Limit exceeded for %s, retry in %sms", key, pexpire
            )
            await callback(request, response, pexpire)
