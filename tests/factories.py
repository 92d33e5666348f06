"""
Shared test data: signatures, webhook bodies and a fake gateway.
"""

import os
from typing import Optional

from sammilan.services.gateway import to_minor_units
from sammilan.services.signature import compute_signature

KEY_SECRET = os.environ["RAZORPAY_KEY_SECRET"]
WEBHOOK_SECRET = os.environ["RAZORPAY_WEBHOOK_SECRET"]


def payment_signature(order_id: str, payment_id: str) -> str:
    """Signature the checkout widget would hand back to the client."""
    return compute_signature(KEY_SECRET, f"{order_id}|{payment_id}")


def webhook_signature(body: bytes) -> str:
    return compute_signature(WEBHOOK_SECRET, body)


def payment_event(
    event: str,
    order_id: str,
    payment_id: str,
    amount: int = 50000,
    status: Optional[str] = None,
    **entity,
) -> dict:
    """Razorpay webhook body for a payment event."""
    return {
        "entity": "event",
        "account_id": "acc_test",
        "event": event,
        "contains": ["payment"],
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "amount": amount,
                    "currency": "INR",
                    "status": status or ("captured" if event == "payment.captured" else "failed"),
                    "order_id": order_id,
                    "method": "upi",
                    "email": "jane@example.com",
                    "contact": "+919999999999",
                    **entity,
                }
            }
        },
        "created_at": 1760000000,
    }


class FakeGateway:
    """In-memory stand-in for RazorpayGateway."""
    
    key_id = "rzp_test_key"
    
    def __init__(self):
        self.created = []
        self.lookups = []
        self.payments = {}
        self.lookup_errors = {}
        self.create_error: Optional[Exception] = None
        self.next_order_id: Optional[str] = None
        self._counter = 0
    
    async def create_order(self, amount, currency, receipt, notes=None):
        if self.create_error:
            raise self.create_error
        self._counter += 1
        order_id = self.next_order_id or f"order_test{self._counter:04d}"
        self.next_order_id = None
        order = {
            "id": order_id,
            "entity": "order",
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
            "status": "created",
        }
        self.created.append(order)
        return order
    
    async def fetch_order_payments(self, order_id):
        self.lookups.append(order_id)
        if order_id in self.lookup_errors:
            raise self.lookup_errors[order_id]
        return list(self.payments.get(order_id, []))
