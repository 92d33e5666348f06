"""
Razorpay HMAC-SHA256 signature checks.

Client verify signs "order_id|payment_id" with the API key secret.
Webhooks sign the raw request body with the webhook secret, so the body
must be checked before it is parsed.
"""

import hmac
import hashlib
import logging
from typing import Optional, Union

from sammilan.config import settings

logger = logging.getLogger(__name__)


def compute_signature(secret: str, message: Union[str, bytes]) -> str:
    """Hex HMAC-SHA256 of `message` keyed with `secret`."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _matches(secret: str, message: Union[str, bytes], signature: Optional[str]) -> bool:
    if not secret:
        logger.error("Signature secret not configured")
        return False
    if not signature:
        return False
    expected = compute_signature(secret, message)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    secret: Optional[str] = None,
) -> bool:
    """Verify the checkout callback signature."""
    if secret is None:
        secret = settings.razorpay_key_secret
    return _matches(secret, f"{order_id}|{payment_id}", signature)


def verify_webhook_signature(
    raw_body: bytes,
    signature: Optional[str],
    secret: Optional[str] = None,
) -> bool:
    """Verify the X-Razorpay-Signature header against the raw body bytes."""
    if secret is None:
        secret = settings.razorpay_webhook_secret
    return _matches(secret, raw_body, signature)
