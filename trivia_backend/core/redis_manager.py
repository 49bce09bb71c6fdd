from redis.asyncio import Redis
from trivia_backend.core.config import settings

_redis: Redis | None = None

async def get_redis() -> Redis:
    """
    Returns the Redis singleton. Supports TLS via the rediss:// scheme
    and is tuned for managed cloud providers (Upstash, Redis Cloud).
    """
    global _redis
    if _redis is None:
        _redis = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,     # periodic PING keeps the connection alive
            socket_timeout=3,             # per-command timeout
            socket_connect_timeout=3,     # connect timeout
            retry_on_timeout=True,
            max_connections=50,
        )
        # Fail fast on startup when Redis is unreachable
        await _redis.ping()
    return _redis

def set_redis(client: Redis | None) -> None:
    """Swap the singleton, e.g. for a FakeRedis instance in tests."""
    global _redis
    _redis = client

async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
