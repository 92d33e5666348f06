"""
Stats Service - public donation totals for the home page.
"""

import json
import logging
from typing import Optional

from redis.asyncio.client import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.config import settings
from sammilan.services.donation_store import DonationStore

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "sammilan:stats:v1"

DEGRADED_STATS = {"devotees": 0, "funds": 0, "live": False, "degraded": True}


class StatsService:
    """Count and sum of successful donations, cached in Redis."""
    
    def __init__(self, db: AsyncSession, redis: Optional[Redis] = None):
        self.db = db
        self.redis = redis
        self.store = DonationStore(db)
    
    async def _cached(self) -> Optional[dict]:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(STATS_CACHE_KEY)
        except Exception as e:
            logger.warning(f"Stats cache read failed: {e}")
            return None
        return json.loads(raw) if raw else None
    
    async def _store_cache(self, stats: dict) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(
                STATS_CACHE_KEY,
                settings.stats_cache_seconds,
                json.dumps(stats),
            )
        except Exception as e:
            logger.warning(f"Stats cache write failed: {e}")
    
    async def get_stats(self) -> dict:
        """Never raises; the home page falls back to degraded stats."""
        cached = await self._cached()
        if cached is not None:
            return cached
        
        try:
            devotees, funds = await self.store.success_totals()
        except Exception as e:
            logger.error(f"Stats query failed: {e}", exc_info=True)
            return dict(DEGRADED_STATS)
        
        stats = {"devotees": devotees, "funds": float(funds), "live": True}
        await self._store_cache(stats)
        return stats
