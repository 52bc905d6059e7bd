import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError
import sentry_sdk
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors.exceptions import ServiceUnavailableException
from src.main.config import config
from src.system.schemas import HealthCheckResponse


class HealthService:
    """Readiness of the two stateful dependencies: Redis and PostgreSQL."""

    def __init__(self, redis_client: Redis) -> None:
        self.redis_client = redis_client
        self.logger = logging.getLogger(__name__)

    async def get_status(self, session: AsyncSession) -> HealthCheckResponse:
        redis_is_ok = await self._check_redis()
        postgres_is_ok = await self._check_postgres(session)
        if not redis_is_ok or not postgres_is_ok:
            raise ServiceUnavailableException(
                "System health check failed",
                additional_info={"redis": redis_is_ok, "postgres": postgres_is_ok},
            )
        return HealthCheckResponse(
            version=config.app.VERSION, redis=redis_is_ok, postgres=postgres_is_ok
        )

    async def _check_redis(self) -> bool:
        try:
            return bool(await self.redis_client.ping())
        except (RedisError, OSError) as exc:
            self.logger.error("Redis health check failed", exc_info=exc)
            sentry_sdk.capture_exception(exc)
            return False

    async def _check_postgres(self, session: AsyncSession) -> bool:
        try:
            await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as exc:
            self.logger.error("Postgres health check failed", exc_info=exc)
            sentry_sdk.capture_exception(exc)
            return False
