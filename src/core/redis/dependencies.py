from fastapi import Request
from redis.asyncio import Redis

from src.core.errors.exceptions import InfrastructureException


async def get_redis_client(request: Request) -> Redis:
    """Shared Redis client created in the application lifespan."""
    redis_client: Redis | None = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        raise InfrastructureException(
            "Redis client is not initialized",
            additional_info={"path": request.url.path},
        )
    return redis_client
