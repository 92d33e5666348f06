"""
Razorpay gateway client.

Thin wrapper over the razorpay SDK that bounds every call with a timeout and
turns SDK / transport failures into GatewayError. SDK calls are blocking, so
they run in a worker thread.
"""

import asyncio
import logging
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import razorpay
import requests

from sammilan.config import settings
from sammilan.exceptions import GatewayError

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Rupees -> paise."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: Any) -> Decimal:
    """Paise -> rupees."""
    return (Decimal(int(amount or 0)) / 100).quantize(Decimal("0.01"))


def new_receipt_token() -> str:
    """Timestamp-derived receipt token sent with each new order."""
    return f"donation_{int(time.time() * 1000)}"


class RazorpayGateway:
    """Order creation and payment lookup against Razorpay."""
    
    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.key_id = key_id or settings.razorpay_key_id
        self.timeout = timeout or settings.gateway_timeout_seconds
        self.client = razorpay.Client(
            auth=(self.key_id, key_secret or settings.razorpay_key_secret)
        )
    
    async def _call(self, description: str, func, *args) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(func, *args, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(f"Razorpay {description} timed out after {self.timeout}s")
            raise GatewayError(f"Razorpay {description} timed out") from e
        except Exception as e:
            logger.error(f"Razorpay {description} failed: {e}")
            raise GatewayError(f"Razorpay {description} failed") from e
    
    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Create a remote order. Amount is given in the major unit."""
        data = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        order = await self._call("order create", self.client.order.create, data)
        logger.info(f"Created Razorpay order {order.get('id')} for {amount} {currency}")
        return order
    
    async def fetch_order_payments(self, order_id: str) -> List[Dict[str, Any]]:
        """All payment attempts recorded against an order."""
        result = await self._call(
            f"payment lookup for {order_id}",
            self.client.order.payments,
            order_id,
        )
        return list(result.get("items") or [])
