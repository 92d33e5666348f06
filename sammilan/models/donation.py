"""Donation model - one row per Razorpay order."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import String, DateTime, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from sammilan.config import settings
from sammilan.database import Base
from sammilan.fsm.states import DonationStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_receipt_no(donation_id: int, prefix: Optional[str] = None) -> str:
    """Receipt number: prefix + internal id zero-padded to 6 digits."""
    if prefix is None:
        prefix = settings.receipt_prefix
    return f"{prefix}{donation_id:06d}"


class Donation(Base):
    """
    Donation record keyed by the gateway order id.
    
    order_id is unique and never changes. payment_id is unique once set and
    acts as the idempotency key for repeated verify calls and webhook
    deliveries.
    """
    
    __tablename__ = "donations"
    
    # Integer id so receipt numbers stay short and sequential
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    
    # Razorpay order ID (natural key for all writers)
    order_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    
    # Razorpay payment ID
    payment_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )
    
    # Last validated signature (audit only)
    signature: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    
    # Amount in major unit (rupees)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    
    currency: Mapped[str] = mapped_column(
        String(3),
        default="INR",
        nullable=False,
    )
    
    # Donor identity
    donor_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    
    donor_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    
    donor_phone: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
    )
    
    # Payment method reported by the webhook (upi, card, netbanking...)
    payment_method: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
    )
    
    status: Mapped[str] = mapped_column(
        String(16),
        default=DonationStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    
    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
    
    def __repr__(self) -> str:
        return f"<Donation {self.id} {self.order_id} {self.status}>"
    
    @property
    def receipt_no(self) -> str:
        return format_receipt_no(self.id)
    
    @property
    def is_final(self) -> bool:
        """SUCCESS and REFUNDED are never overwritten."""
        return DonationStatus(self.status).is_terminal
    
    def to_receipt_payload(self) -> Dict[str, Any]:
        """Payment + donor snapshot used by the client to render a receipt."""
        return {
            "success": True,
            "payment": {
                "paymentId": self.payment_id,
                "orderId": self.order_id,
                "amount": float(self.amount),
                "receiptNo": self.receipt_no,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
            },
            "donor": {
                "name": self.donor_name,
                "email": self.donor_email,
                "phone": self.donor_phone,
            },
        }
    
    def to_admin_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "paymentId": self.payment_id,
            "amount": float(self.amount),
            "currency": self.currency,
            "status": self.status,
            "receiptNo": self.receipt_no,
            "donorName": self.donor_name,
            "donorEmail": self.donor_email,
            "donorPhone": self.donor_phone,
            "paymentMethod": self.payment_method,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
