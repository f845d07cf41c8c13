from __future__ import annotations

from redis import Redis
from redis.connection import ConnectionPool

from matching_api.core.config import settings

_pool: ConnectionPool | None = None


def get_redis() -> Redis:
    """Shared-pool client for the rate limiter."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
    return Redis(connection_pool=_pool)
