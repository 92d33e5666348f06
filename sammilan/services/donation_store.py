"""
Donation Store - persistence and status transitions for donations.

Every status change is a single conditional UPDATE (compare-and-swap on the
current status) committed on its own, so the verify handler, the webhook
handler and the reconciliation sweep can run in separate processes without
any in-memory locking. Uniqueness of order_id / payment_id is enforced by
the database; losing a uniqueness race is reported, not raised.
"""

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.fsm.states import DonationStatus, statuses_allowing
from sammilan.models.donation import Donation, utcnow

logger = logging.getLogger(__name__)


class TransitionResult(str, Enum):
    """Outcome of a conditional status write."""
    
    APPLIED = "applied"
    # Row missing or not in an allowed source status
    NOT_APPLIED = "not_applied"
    # payment_id / order_id already held by another row
    CONFLICT = "conflict"


class DonationStore:
    """Data access for the donations table."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    
    async def _fetch_one(self, *criteria) -> Optional[Donation]:
        result = await self.db.execute(
            select(Donation)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
    
    async def get_by_order_id(self, order_id: str) -> Optional[Donation]:
        return await self._fetch_one(Donation.order_id == order_id)
    
    async def get_by_payment_id(self, payment_id: str) -> Optional[Donation]:
        return await self._fetch_one(Donation.payment_id == payment_id)
    
    async def list_stale_pending(self, cutoff: datetime, limit: int) -> List[Donation]:
        """PENDING donations created before `cutoff`, oldest first."""
        result = await self.db.execute(
            select(Donation)
            .where(Donation.status == DonationStatus.PENDING.value)
            .where(Donation.created_at < cutoff)
            .order_by(Donation.created_at, Donation.id)
            .limit(limit)
        )
        return list(result.scalars().all())
    
    async def success_totals(self) -> Tuple[int, Decimal]:
        """Count and sum of successful donations."""
        result = await self.db.execute(
            select(
                func.count(Donation.id),
                func.coalesce(func.sum(Donation.amount), 0),
            ).where(Donation.status == DonationStatus.SUCCESS.value)
        )
        count, total = result.one()
        return int(count or 0), Decimal(str(total or 0))
    
    async def list_donations(
        self,
        status: Optional[DonationStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Donation], int]:
        """Newest first, with the total matching count."""
        query = select(Donation)
        count_query = select(func.count(Donation.id))
        if status is not None:
            query = query.where(Donation.status == DonationStatus(status).value)
            count_query = count_query.where(Donation.status == DonationStatus(status).value)
        
        result = await self.db.execute(
            query.order_by(Donation.created_at.desc(), Donation.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await self.db.scalar(count_query)
        return list(result.scalars().all()), int(total or 0)
    
    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------
    
    async def _insert(self, donation: Donation) -> Optional[Donation]:
        self.db.add(donation)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                f"Insert for order {donation.order_id} lost a uniqueness race"
            )
            return None
        return donation
    
    async def create_pending(
        self,
        order_id: str,
        amount: Decimal,
        currency: str,
        donor_name: Optional[str] = None,
        donor_email: Optional[str] = None,
        donor_phone: Optional[str] = None,
    ) -> Donation:
        """Insert a PENDING donation; returns the existing row if the order is known."""
        existing = await self.get_by_order_id(order_id)
        if existing:
            return existing
        
        donation = await self._insert(
            Donation(
                order_id=order_id,
                amount=amount,
                currency=currency,
                donor_name=donor_name,
                donor_email=donor_email,
                donor_phone=donor_phone,
                status=DonationStatus.PENDING.value,
            )
        )
        if donation is None:
            donation = await self.get_by_order_id(order_id)
        return donation
    
    async def insert_from_webhook(
        self,
        order_id: str,
        payment_id: str,
        status: DonationStatus,
        amount: Decimal,
        currency: str,
        donor_name: Optional[str] = None,
        donor_email: Optional[str] = None,
        donor_phone: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> Optional[Donation]:
        """
        Create a row for a payment that was never tracked locally.
        Returns None when another writer created it first.
        """
        return await self._insert(
            Donation(
                order_id=order_id,
                payment_id=payment_id,
                amount=amount,
                currency=currency,
                donor_name=donor_name,
                donor_email=donor_email,
                donor_phone=donor_phone,
                payment_method=payment_method,
                status=DonationStatus(status).value,
            )
        )
    
    # ------------------------------------------------------------------
    # Conditional transitions
    # ------------------------------------------------------------------
    
    async def _transition(
        self,
        criteria: Iterable,
        from_statuses: Iterable[str],
        values: dict,
    ) -> TransitionResult:
        stmt = (
            update(Donation)
            .where(*criteria)
            .where(Donation.status.in_(list(from_statuses)))
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            applied = bool(result.rowcount)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return TransitionResult.CONFLICT
        
        return TransitionResult.APPLIED if applied else TransitionResult.NOT_APPLIED
    
    async def mark_success(
        self,
        order_id: str,
        payment_id: str,
        signature: Optional[str] = None,
        **enrich,
    ) -> TransitionResult:
        """
        PENDING/FAILED -> SUCCESS. Never touches SUCCESS or REFUNDED rows.
        `enrich` may carry donor_email / donor_phone / payment_method.
        """
        values = {"status": DonationStatus.SUCCESS.value, "payment_id": payment_id}
        if signature is not None:
            values["signature"] = signature
        # Only fill donor details that are still empty
        for column, value in enrich.items():
            if value:
                values[column] = func.coalesce(getattr(Donation, column), value)
        
        outcome = await self._transition(
            [Donation.order_id == order_id],
            statuses_allowing(DonationStatus.SUCCESS),
            values,
        )
        logger.debug(f"mark_success {order_id}/{payment_id}: {outcome.value}")
        return outcome
    
    async def mark_failed(
        self,
        order_id: str,
        payment_id: Optional[str] = None,
        signature: Optional[str] = None,
        from_statuses: Iterable[DonationStatus] = (DonationStatus.PENDING,),
    ) -> TransitionResult:
        """
        -> FAILED from the given source statuses (PENDING only by default).
        If the payment id is already held by another row the status is still
        recorded, without the payment id.
        """
        sources = [DonationStatus(s).value for s in from_statuses]
        values = {"status": DonationStatus.FAILED.value}
        if signature is not None:
            values["signature"] = signature
        
        if payment_id:
            outcome = await self._transition(
                [Donation.order_id == order_id],
                sources,
                {**values, "payment_id": payment_id},
            )
            if outcome is not TransitionResult.CONFLICT:
                return outcome
            logger.warning(
                f"Payment id {payment_id} already attached elsewhere; "
                f"marking order {order_id} FAILED without it"
            )
        
        return await self._transition([Donation.order_id == order_id], sources, values)
    
    async def mark_refunded(self, payment_id: str) -> TransitionResult:
        """SUCCESS -> REFUNDED for the donation holding `payment_id`."""
        return await self._transition(
            [Donation.payment_id == payment_id],
            statuses_allowing(DonationStatus.REFUNDED),
            {"status": DonationStatus.REFUNDED.value},
        )
