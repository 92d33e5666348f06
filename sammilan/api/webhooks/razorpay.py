"""
Razorpay Webhook Handler.
Verifies signatures over the raw body and applies payment events.
"""

import json
import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.database import get_db
from sammilan.exceptions import DonationValidationError
from sammilan.services.signature import verify_webhook_signature
from sammilan.services.webhook_events import parse_webhook_event
from sammilan.services.webhook_service import WebhookService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Handle Razorpay webhook events.
    
    Key events:
    - payment.captured: authoritative SUCCESS
    - payment.failed: FAILED unless already captured
    - refund.processed: SUCCESS -> REFUNDED
    
    Any non-200 answer makes Razorpay redeliver, so processing errors
    return 500 and everything else that passed validation returns 200.
    """
    ip = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or "unknown"
    
    # Raw body for signature verification; must not be re-serialized
    body = await request.body()
    signature = request.headers.get("X-Razorpay-Signature")
    
    if not signature:
        logger.error(f"Webhook from {ip} missing signature")
        return JSONResponse(status_code=400, content={"error": "Missing webhook signature"})
    
    if not verify_webhook_signature(body, signature):
        logger.error(f"Invalid Razorpay webhook signature from {ip}")
        return JSONResponse(status_code=400, content={"error": "Invalid signature"})
    
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        logger.error(f"Webhook JSON parse failed from {ip}")
        return JSONResponse(status_code=400, content={"error": "Malformed payload"})
    
    try:
        event = parse_webhook_event(payload)
    except DonationValidationError as e:
        logger.error(f"Webhook payload from {ip} rejected: {e.message} {e.context}")
        return JSONResponse(status_code=400, content={"error": "Malformed payload"})
    
    logger.info(f"Razorpay webhook received: {event.event_type}")
    
    try:
        outcome = await WebhookService(db).handle(event)
    except Exception as e:
        logger.error(f"Error processing Razorpay webhook: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})
    
    logger.info(f"Razorpay webhook {event.event_type} -> {outcome.value}")
    return {"received": True}
