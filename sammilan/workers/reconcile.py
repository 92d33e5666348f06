"""
Reconciliation Worker.

Runs every few minutes to resolve donations stuck in PENDING.
"""

import asyncio
import logging

from sammilan.database import close_db, get_db_context
from sammilan.logging_config import configure_logging
from sammilan.services.reconciliation_service import ReconciliationService
from sammilan.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


async def run_sweep() -> dict:
    try:
        async with get_db_context() as db:
            report = await ReconciliationService(db).sweep()
    finally:
        # Pooled connections are bound to this event loop
        await close_db()
    return {"success": True, "checked": report.checked, "outcomes": report.counts}


@celery_app.task(bind=True, max_retries=3)
def reconcile_pending_donations(self):
    """
    Sweep stale PENDING donations against Razorpay.
    
    Per-donation failures are handled inside the sweep; a retry only
    happens when the sweep itself could not run.
    """
    configure_logging()
    try:
        result = asyncio.run(run_sweep())
        logger.info(f"Reconciled pending donations: {result}")
        return result
    except Exception as e:
        logger.error(f"Reconciliation sweep failed: {e}")
        raise self.retry(exc=e, countdown=60)
