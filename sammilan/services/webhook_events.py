"""
Typed Razorpay webhook events.

The JSON payload is parsed once into one of a closed set of event classes.
Events this service does not act on become UnrecognizedEvent, which the
handler accepts and ignores.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from sammilan.exceptions import DonationValidationError
from sammilan.services.gateway import from_minor_units

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"
REFUND_PROCESSED = "refund.processed"


@dataclass(frozen=True)
class PaymentDetails:
    """Fields of a payment entity this service uses."""
    
    order_id: str
    payment_id: str
    amount: Decimal
    currency: str
    email: Optional[str] = None
    contact: Optional[str] = None
    method: Optional[str] = None
    donor_name: Optional[str] = None


@dataclass(frozen=True)
class PaymentCaptured:
    payment: PaymentDetails
    event_type: str = PAYMENT_CAPTURED


@dataclass(frozen=True)
class PaymentFailed:
    payment: PaymentDetails
    error_description: Optional[str] = None
    event_type: str = PAYMENT_FAILED


@dataclass(frozen=True)
class RefundProcessed:
    payment_id: str
    refund_id: Optional[str] = None
    amount: Optional[Decimal] = None
    event_type: str = REFUND_PROCESSED


@dataclass(frozen=True)
class UnrecognizedEvent:
    event_type: str
    reason: str = "unhandled event type"
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


WebhookEvent = Union[PaymentCaptured, PaymentFailed, RefundProcessed, UnrecognizedEvent]


def _section(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    sections = payload.get("payload") or {}
    if not isinstance(sections, dict):
        raise DonationValidationError("Malformed payload", field="payload")
    section = sections.get(name) or {}
    if not isinstance(section, dict):
        raise DonationValidationError("Malformed payload", field=name)
    return section


def _entity(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    entity = _section(payload, name).get("entity") or {}
    if not isinstance(entity, dict):
        raise DonationValidationError("Malformed payload", field=f"{name}.entity")
    return entity


def _amount(value: Any) -> Decimal:
    try:
        return from_minor_units(value)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise DonationValidationError("Malformed payload", field="amount", value=value) from e


def _payment_details(entity: Dict[str, Any]) -> Optional[PaymentDetails]:
    order_id = entity.get("order_id")
    payment_id = entity.get("id")
    if not order_id or not payment_id:
        return None
    
    notes = entity.get("notes") if isinstance(entity.get("notes"), dict) else {}
    return PaymentDetails(
        order_id=str(order_id),
        payment_id=str(payment_id),
        amount=_amount(entity.get("amount")),
        currency=str(entity.get("currency") or "INR"),
        email=entity.get("email") or notes.get("donor_email"),
        contact=entity.get("contact") or notes.get("donor_phone"),
        method=entity.get("method"),
        donor_name=notes.get("donor_name"),
    )


def parse_webhook_event(payload: Dict[str, Any]) -> WebhookEvent:
    """
    Map a decoded webhook body onto a typed event.
    
    Raises DonationValidationError when a known event has the wrong shape.
    """
    if not isinstance(payload, dict):
        raise DonationValidationError("Malformed payload", field="body")
    
    event_type = str(payload.get("event") or "")
    
    if event_type in (PAYMENT_CAPTURED, PAYMENT_FAILED):
        entity = _entity(payload, "payment")
        details = _payment_details(entity)
        if details is None:
            return UnrecognizedEvent(
                event_type=event_type,
                reason="payment payload incomplete",
                raw=payload,
            )
        if event_type == PAYMENT_CAPTURED:
            return PaymentCaptured(payment=details)
        return PaymentFailed(
            payment=details,
            error_description=entity.get("error_description"),
        )
    
    if event_type == REFUND_PROCESSED:
        refund = _entity(payload, "refund")
        payment_id = refund.get("payment_id")
        if not payment_id:
            return UnrecognizedEvent(
                event_type=event_type,
                reason="refund payload missing payment_id",
                raw=payload,
            )
        return RefundProcessed(
            payment_id=str(payment_id),
            refund_id=refund.get("id"),
            amount=_amount(refund.get("amount")) if refund.get("amount") else None,
        )
    
    return UnrecognizedEvent(event_type=event_type, raw=payload)
