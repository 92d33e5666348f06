"""
Reconciliation Service - resolves donations stuck in PENDING.

Runs on a schedule. For every stale PENDING donation the gateway is asked
for the payments recorded against the order. Failures are isolated per
donation and collected into the sweep report.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.config import settings
from sammilan.services.donation_store import DonationStore, TransitionResult
from sammilan.services.gateway import RazorpayGateway

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    # Another writer finalized the donation between select and update
    SUPERSEDED = "superseded"
    ERROR = "error"


@dataclass
class ReconcileResult:
    order_id: str
    outcome: ReconcileOutcome
    payment_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SweepReport:
    results: List[ReconcileResult] = field(default_factory=list)
    
    @property
    def checked(self) -> int:
        return len(self.results)
    
    @property
    def counts(self) -> dict:
        return dict(Counter(r.outcome.value for r in self.results))
    
    def to_dict(self) -> dict:
        return {"success": True, "checked": self.checked}


class ReconciliationService:
    """Periodic sweep over stale PENDING donations."""
    
    def __init__(
        self,
        db: AsyncSession,
        gateway: Optional[RazorpayGateway] = None,
        stale_minutes: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.db = db
        self.store = DonationStore(db)
        self.gateway = gateway or RazorpayGateway()
        self.stale_minutes = stale_minutes or settings.reconcile_stale_minutes
        self.batch_size = batch_size or settings.reconcile_batch_size
    
    async def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=self.stale_minutes)
        
        pending = await self.store.list_stale_pending(cutoff, self.batch_size)
        report = SweepReport()
        
        # Plain ids; a rollback below expires the loaded instances
        order_ids = [donation.order_id for donation in pending]
        
        for order_id in order_ids:
            try:
                result = await self.reconcile_order(order_id)
            except Exception as e:
                await self.db.rollback()
                logger.warning(f"Reconciliation failed for order {order_id}: {e}")
                result = ReconcileResult(order_id, ReconcileOutcome.ERROR, error=str(e))
            report.results.append(result)
        
        logger.info(f"Reconciliation sweep checked {report.checked}: {report.counts}")
        return report
    
    async def reconcile_order(self, order_id: str) -> ReconcileResult:
        payments = await self.gateway.fetch_order_payments(order_id)
        
        captured = next((p for p in payments if p.get("status") == "captured"), None)
        if captured:
            result = await self.store.mark_success(
                order_id,
                captured["id"],
                donor_email=captured.get("email"),
                donor_phone=captured.get("contact"),
                payment_method=captured.get("method"),
            )
            return self._result(order_id, captured["id"], result, ReconcileOutcome.SUCCEEDED)
        
        failed = next((p for p in payments if p.get("status") == "failed"), None)
        if failed:
            result = await self.store.mark_failed(order_id, payment_id=failed["id"])
            return self._result(order_id, failed["id"], result, ReconcileOutcome.FAILED)
        
        return ReconcileResult(order_id, ReconcileOutcome.UNCHANGED)
    
    def _result(
        self,
        order_id: str,
        payment_id: str,
        result: TransitionResult,
        applied: ReconcileOutcome,
    ) -> ReconcileResult:
        if result is TransitionResult.APPLIED:
            logger.info(f"Reconciled order {order_id} -> {applied.value} ({payment_id})")
            return ReconcileResult(order_id, applied, payment_id=payment_id)
        logger.info(f"Order {order_id} already resolved elsewhere ({result.value})")
        return ReconcileResult(order_id, ReconcileOutcome.SUPERSEDED, payment_id=payment_id)
