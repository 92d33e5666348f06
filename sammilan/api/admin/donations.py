"""
Admin Donation Endpoints.
Read-only listing for the admin dashboard.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.api.deps import get_admin_user
from sammilan.database import get_db
from sammilan.fsm.states import DonationStatus
from sammilan.services.donation_store import DonationStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/donations", dependencies=[Depends(get_admin_user)])
async def list_donations(
    status: Optional[DonationStatus] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List donations, newest first. PROTECTED: requires X-Admin-Key header."""
    donations, total = await DonationStore(db).list_donations(
        status=status,
        limit=limit,
        offset=offset,
    )
    return {
        "donations": [d.to_admin_dict() for d in donations],
        "total": total,
        "limit": limit,
        "offset": offset,
    }
