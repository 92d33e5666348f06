"""
Order Service - donation order initiation.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.config import settings
from sammilan.exceptions import DonationValidationError
from sammilan.services.donation_store import DonationStore
from sammilan.services.gateway import RazorpayGateway, new_receipt_token

logger = logging.getLogger(__name__)


@dataclass
class CreatedOrder:
    """Order handle returned to the checkout client."""
    
    order_id: str
    amount: int  # minor unit, as reported by Razorpay
    currency: str
    key_id: str
    
    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "amount": self.amount,
            "currency": self.currency,
            "keyId": self.key_id,
        }


def parse_amount(raw: Any) -> Decimal:
    """Validate a requested donation amount (major unit)."""
    if raw is None or isinstance(raw, bool):
        raise DonationValidationError("Invalid amount")
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise DonationValidationError("Invalid amount")
    
    if not amount.is_finite():
        raise DonationValidationError("Invalid amount")
    if amount < settings.donation_min_amount or amount > settings.donation_max_amount:
        raise DonationValidationError(
            "Invalid amount",
            minimum=str(settings.donation_min_amount),
            maximum=str(settings.donation_max_amount),
        )
    return amount


class OrderService:
    """Creates Razorpay orders and the matching PENDING donation."""
    
    def __init__(self, db: AsyncSession, gateway: Optional[RazorpayGateway] = None):
        self.db = db
        self.store = DonationStore(db)
        self.gateway = gateway or RazorpayGateway()
    
    async def create_order(
        self,
        amount: Any,
        donor_name: Optional[str],
        donor_email: Optional[str],
        donor_phone: Optional[str],
    ) -> CreatedOrder:
        """
        Validate the request, create the remote order, persist PENDING.
        
        Gateway failures propagate as GatewayError; nothing is retried here.
        """
        value = parse_amount(amount)
        
        donor_name = (donor_name or "").strip()
        donor_email = (donor_email or "").strip()
        donor_phone = (donor_phone or "").strip()
        if not donor_name or not donor_email or not donor_phone:
            raise DonationValidationError("Missing donor details")
        
        order = await self.gateway.create_order(
            amount=value,
            currency=settings.donation_currency,
            receipt=new_receipt_token(),
            notes={
                "donor_name": donor_name,
                "donor_email": donor_email,
                "donor_phone": donor_phone,
            },
        )
        
        order_id = order["id"]
        await self.store.create_pending(
            order_id=order_id,
            amount=value,
            currency=order.get("currency") or settings.donation_currency,
            donor_name=donor_name,
            donor_email=donor_email,
            donor_phone=donor_phone,
        )
        
        logger.info(f"Donation order {order_id} created for {value}")
        return CreatedOrder(
            order_id=order_id,
            amount=int(order.get("amount", 0)),
            currency=order.get("currency") or settings.donation_currency,
            key_id=self.gateway.key_id,
        )
