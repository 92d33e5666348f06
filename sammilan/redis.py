"""
Shared async Redis connection, used as the public stats cache.
"""

from typing import Optional
import logging

from redis import asyncio as aioredis
from redis.asyncio.client import Redis

from sammilan.config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Lazily created process-wide client."""

    _client: Optional[Redis] = None

    @classmethod
    def get_client(cls) -> Redis:
        if cls._client is None:
            # Short timeouts: a slow cache must not hold up /api/stats
            cls._client = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=2.0,
                socket_timeout=2.0,
            )
            logger.info("Stats cache client initialized")
        return cls._client

    @classmethod
    async def close(cls) -> None:
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None


async def get_redis() -> Redis:
    return RedisClient.get_client()
