"""
Tests for Razorpay signature verification.
"""

import json

from factories import KEY_SECRET, WEBHOOK_SECRET, payment_signature, webhook_signature
from sammilan.services.signature import (
    compute_signature,
    verify_payment_signature,
    verify_webhook_signature,
)


class TestPaymentSignature:
    """Checkout callback: HMAC over "order_id|payment_id"."""
    
    def test_valid_signature(self):
        signature = payment_signature("order_abc", "pay_123")
        assert verify_payment_signature("order_abc", "pay_123", signature)
    
    def test_known_vector(self):
        # hmac.new(b"secret", b"order_1|pay_1", sha256) computed independently
        import hashlib
        import hmac
        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert compute_signature("secret", "order_1|pay_1") == expected
    
    def test_tampered_signature(self):
        signature = payment_signature("order_abc", "pay_123")
        tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")
        assert not verify_payment_signature("order_abc", "pay_123", tampered)
    
    def test_signature_for_other_payment_rejected(self):
        signature = payment_signature("order_abc", "pay_123")
        assert not verify_payment_signature("order_abc", "pay_999", signature)
    
    def test_missing_signature_rejected(self):
        assert not verify_payment_signature("order_abc", "pay_123", None)
        assert not verify_payment_signature("order_abc", "pay_123", "")
    
    def test_unconfigured_secret_rejects(self):
        signature = compute_signature("", "order_abc|pay_123")
        assert not verify_payment_signature("order_abc", "pay_123", signature, secret="")
    
    def test_uses_key_secret_not_webhook_secret(self):
        signature = compute_signature(WEBHOOK_SECRET, "order_abc|pay_123")
        assert not verify_payment_signature("order_abc", "pay_123", signature)
        assert verify_payment_signature(
            "order_abc", "pay_123", compute_signature(KEY_SECRET, "order_abc|pay_123")
        )


class TestWebhookSignature:
    """Webhook: HMAC over the raw body bytes."""
    
    def test_valid_raw_body(self):
        body = b'{"event": "payment.captured", "payload": {}}'
        assert verify_webhook_signature(body, webhook_signature(body))
    
    def test_reserialized_body_breaks_signature(self):
        body = b'{"event":"payment.captured","payload":{}}'
        signature = webhook_signature(body)
        reformatted = json.dumps(json.loads(body), indent=2).encode()
        assert not verify_webhook_signature(reformatted, signature)
    
    def test_missing_signature(self):
        assert not verify_webhook_signature(b"{}", None)
