"""Public donation stats."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.config import settings
from sammilan.database import get_db
from sammilan.redis import get_redis
from sammilan.services.stats_service import StatsService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/stats")
async def donation_stats(
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Total successful donations and funds. Never fails."""
    stats = await StatsService(db, redis=redis).get_stats()
    
    if stats.get("degraded"):
        cache_control = "no-store"
    else:
        cache_control = (
            f"public, s-maxage={settings.stats_cache_seconds}, "
            f"stale-while-revalidate={settings.stats_cache_seconds * 2}"
        )
    return JSONResponse(content=stats, headers={"Cache-Control": cache_control})
