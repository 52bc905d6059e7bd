from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from src.core.database.engine import engine
from src.core.limiter import FastAPILimiter
from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import config
from src.main.sentry import init_sentry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await on_redis_startup(app, config.redis.dsn)
    # Rate limits and webhook de-duplication share one connection pool
    await FastAPILimiter.init(app.state.redis_client, prefix="limiter")

    yield

    FastAPILimiter.reset()
    await on_redis_shutdown(app)
    await engine.dispose()
    logger.info("Database engine disposed.")
