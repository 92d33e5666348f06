"""
Webhook Service - authoritative processing of Razorpay payment events.

Razorpay delivers at least once, so every handler is idempotent: the
payment id is the deduplication key and terminal donations are never
rewritten. Exceptions propagate so the route can answer 500 and Razorpay
redelivers the event.
"""

import logging
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.fsm.states import DonationStatus, can_transition
from sammilan.services.donation_store import DonationStore, TransitionResult
from sammilan.services.webhook_events import (
    PaymentCaptured,
    PaymentDetails,
    PaymentFailed,
    RefundProcessed,
    UnrecognizedEvent,
    WebhookEvent,
)

logger = logging.getLogger(__name__)


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    CREATED = "created"
    DUPLICATE = "duplicate"
    IGNORED_TERMINAL = "ignored_terminal"
    IGNORED = "ignored"


class WebhookService:
    """Applies typed webhook events to the donation store."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DonationStore(db)
    
    async def handle(self, event: WebhookEvent) -> WebhookOutcome:
        if isinstance(event, PaymentCaptured):
            return await self.handle_payment_captured(event.payment)
        if isinstance(event, PaymentFailed):
            return await self.handle_payment_failed(event.payment)
        if isinstance(event, RefundProcessed):
            return await self.handle_refund_processed(event)
        if isinstance(event, UnrecognizedEvent):
            logger.info(f"Unhandled Razorpay event: {event.event_type} ({event.reason})")
            return WebhookOutcome.IGNORED
        raise TypeError(f"Unknown webhook event {event!r}")
    
    async def handle_payment_captured(self, payment: PaymentDetails) -> WebhookOutcome:
        """
        Process payment.captured.
        
        Known payment id on a final donation -> duplicate delivery. Known
        order -> SUCCESS unless already terminal. Unknown order -> create the
        SUCCESS row from the event, since a captured payment always wins.
        """
        donation = await self.store.get_by_payment_id(payment.payment_id)
        if donation is not None and donation.is_final:
            logger.info(
                f"Duplicate webhook ignored for {payment.order_id}/{payment.payment_id}"
            )
            return WebhookOutcome.DUPLICATE
        if donation is None:
            donation = await self.store.get_by_order_id(payment.order_id)
        
        order_id = payment.order_id
        if donation is None:
            created = await self.store.insert_from_webhook(
                order_id=payment.order_id,
                payment_id=payment.payment_id,
                status=DonationStatus.SUCCESS,
                amount=payment.amount,
                currency=payment.currency,
                donor_name=payment.donor_name,
                donor_email=payment.email,
                donor_phone=payment.contact,
                payment_method=payment.method,
            )
            if created is not None:
                logger.info(
                    f"Payment captured via webhook for untracked order "
                    f"{payment.order_id}; donation {created.id} created"
                )
                return WebhookOutcome.CREATED
        elif not can_transition(donation.status, DonationStatus.SUCCESS):
            logger.warning(
                f"Webhook capture {payment.payment_id} ignored: order "
                f"{donation.order_id} already {donation.status} with "
                f"payment {donation.payment_id}"
            )
            return WebhookOutcome.IGNORED_TERMINAL
        else:
            order_id = donation.order_id
        
        result = await self.store.mark_success(
            order_id,
            payment.payment_id,
            donor_name=payment.donor_name,
            donor_email=payment.email,
            donor_phone=payment.contact,
            payment_method=payment.method,
        )
        if result is TransitionResult.APPLIED:
            logger.info(
                f"Payment captured via webhook for {order_id}/{payment.payment_id}"
            )
            return WebhookOutcome.APPLIED
        
        logger.info(
            f"Webhook capture {order_id}/{payment.payment_id} already "
            f"processed by another writer ({result.value})"
        )
        if result is TransitionResult.CONFLICT:
            return WebhookOutcome.DUPLICATE
        return WebhookOutcome.IGNORED_TERMINAL
    
    async def handle_payment_failed(self, payment: PaymentDetails) -> WebhookOutcome:
        """Process payment.failed. A captured payment is never downgraded."""
        donation = await self.store.get_by_payment_id(payment.payment_id)
        if donation is None:
            donation = await self.store.get_by_order_id(payment.order_id)
        elif donation.status == DonationStatus.FAILED.value:
            logger.info(f"Duplicate failure webhook ignored for {payment.payment_id}")
            return WebhookOutcome.DUPLICATE
        
        if donation is None:
            created = await self.store.insert_from_webhook(
                order_id=payment.order_id,
                payment_id=payment.payment_id,
                status=DonationStatus.FAILED,
                amount=payment.amount,
                currency=payment.currency,
                donor_name=payment.donor_name,
                donor_email=payment.email,
                donor_phone=payment.contact,
                payment_method=payment.method,
            )
            if created is not None:
                logger.warning(
                    f"Payment failed via webhook for untracked order {payment.order_id}"
                )
                return WebhookOutcome.CREATED
            order_id = payment.order_id
        elif not can_transition(donation.status, DonationStatus.FAILED):
            logger.info(
                f"Failure webhook ignored: order {donation.order_id} already {donation.status}"
            )
            return WebhookOutcome.IGNORED_TERMINAL
        else:
            order_id = donation.order_id
        
        result = await self.store.mark_failed(
            order_id,
            payment_id=payment.payment_id,
            from_statuses=(DonationStatus.PENDING, DonationStatus.FAILED),
        )
        if result is TransitionResult.APPLIED:
            logger.warning(
                f"Payment failed via webhook for {order_id}/{payment.payment_id}"
            )
            return WebhookOutcome.APPLIED
        return WebhookOutcome.IGNORED_TERMINAL
    
    async def handle_refund_processed(self, event: RefundProcessed) -> WebhookOutcome:
        """Process refund.processed: SUCCESS -> REFUNDED."""
        result = await self.store.mark_refunded(event.payment_id)
        if result is TransitionResult.APPLIED:
            logger.info(f"Refund {event.refund_id} processed for payment {event.payment_id}")
            return WebhookOutcome.APPLIED
        
        donation = await self.store.get_by_payment_id(event.payment_id)
        if donation is None:
            logger.warning(f"Refund for unknown payment {event.payment_id}")
        elif donation.status == DonationStatus.REFUNDED.value:
            return WebhookOutcome.DUPLICATE
        else:
            logger.info(
                f"Refund ignored for payment {event.payment_id}: status {donation.status}"
            )
        return WebhookOutcome.IGNORED
