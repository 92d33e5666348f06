"""
Cron Endpoints.
External scheduler trigger for the reconciliation sweep.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.api.deps import get_gateway, verify_cron_secret
from sammilan.database import get_db
from sammilan.services.gateway import RazorpayGateway
from sammilan.services.reconciliation_service import ReconciliationService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/reconcile-donations", dependencies=[Depends(verify_cron_secret)])
async def reconcile_donations(
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    """Resolve stale PENDING donations against Razorpay."""
    try:
        report = await ReconciliationService(db, gateway=gateway).sweep()
    except Exception as e:
        logger.error(f"Reconciliation cron error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Reconciliation failed"})
    
    return report.to_dict()
