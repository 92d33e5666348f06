"""
Verification Service - optimistic client-side payment verification.

Called from the checkout success callback. The webhook remains the
authority: this path never overwrites a SUCCESS or REFUNDED donation.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.exceptions import (
    DonationNotFoundError,
    DonationValidationError,
    SignatureVerificationError,
)
from sammilan.fsm.states import DonationStatus
from sammilan.models.donation import Donation
from sammilan.services.donation_store import DonationStore, TransitionResult
from sammilan.services.signature import verify_payment_signature

logger = logging.getLogger(__name__)


class VerifyOutcome(str, Enum):
    ALREADY_FINAL = "already_final"
    DUPLICATE = "duplicate"
    VERIFIED = "verified"
    # Conditional update lost to a concurrent writer
    RACED = "raced"


@dataclass
class VerificationResult:
    donation: Donation
    outcome: VerifyOutcome
    
    def to_dict(self) -> dict:
        return self.donation.to_receipt_payload()


class VerificationService:
    """Handles the client verify callback for a single order."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DonationStore(db)
    
    async def verify(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> VerificationResult:
        donation = await self.store.get_by_order_id(order_id)
        if donation is None:
            logger.warning(f"Verify called for unknown order {order_id}")
            raise DonationNotFoundError("Donation not found", order_id=order_id)
        
        if donation.is_final:
            logger.info(
                f"Verify ignored for order {order_id}: already {donation.status}"
            )
            return VerificationResult(donation, VerifyOutcome.ALREADY_FINAL)
        
        if not verify_payment_signature(order_id, payment_id, signature):
            logger.error(
                f"Razorpay signature mismatch for order {order_id} payment {payment_id}"
            )
            if donation.status == DonationStatus.PENDING.value:
                # Forged attempt: its payment id is not recorded as real
                await self.store.mark_failed(order_id, signature=signature)
            raise SignatureVerificationError(
                "Signature verification failed",
                order_id=order_id,
                payment_id=payment_id,
            )
        
        if donation.payment_id == payment_id:
            logger.info(f"Duplicate verify ignored for {order_id}/{payment_id}")
            return VerificationResult(donation, VerifyOutcome.DUPLICATE)
        
        result = await self.store.mark_success(order_id, payment_id, signature=signature)
        donation = await self.store.get_by_order_id(order_id)
        
        if result is TransitionResult.APPLIED:
            logger.info(f"Payment verified (optimistic) for {order_id}/{payment_id}")
            return VerificationResult(donation, VerifyOutcome.VERIFIED)
        
        if not donation.is_final:
            # payment id already attached to a different order
            logger.error(
                f"Verify for {order_id}/{payment_id} conflicts with another donation"
            )
            raise DonationValidationError(
                "Payment already recorded for another donation",
                order_id=order_id,
                payment_id=payment_id,
            )
        
        # Webhook or sweep got there first; report what is stored
        logger.info(
            f"Verify for {order_id}/{payment_id} lost to a concurrent writer "
            f"({result.value}); returning stored {donation.status}"
        )
        return VerificationResult(donation, VerifyOutcome.RACED)
