from redis.asyncio import Redis

# Webhook claims and rate-limit counters are short strings
DEFAULT_SOCKET_TIMEOUT_SECONDS = 5.0


def create_redis_client(
    connection_url: str,
    *,
    decode_responses: bool = True,
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT_SECONDS,
) -> Redis:
    """Build the shared async client; kept separate so tests can patch it."""
    return Redis.from_url(
        connection_url,
        decode_responses=decode_responses,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        health_check_interval=30,
    )
