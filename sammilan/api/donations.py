"""
Donation Endpoints.
Order creation and the optimistic checkout verification callback.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from sammilan.api.deps import get_gateway
from sammilan.database import get_db
from sammilan.exceptions import (
    DonationNotFoundError,
    DonationValidationError,
    GatewayError,
    SignatureVerificationError,
)
from sammilan.services.gateway import RazorpayGateway
from sammilan.services.order_service import OrderService
from sammilan.services.verification_service import VerificationService

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateOrderRequest(BaseModel):
    """Request body for creating a donation order."""
    amount: Optional[Any] = None
    donorName: Optional[str] = None
    donorEmail: Optional[str] = None
    donorPhone: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    """Checkout success callback payload. Donor fields are informational."""
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    donorName: Optional[str] = None
    donorEmail: Optional[str] = None
    donorPhone: Optional[str] = None
    amount: Optional[Any] = None


def client_ip(request: Request) -> str:
    return (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or (request.client.host if request.client else "unknown")
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/create-order")
async def create_order(
    body: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    """Create a Razorpay order and its PENDING donation."""
    try:
        service = OrderService(db, gateway=gateway)
        order = await service.create_order(
            amount=body.amount,
            donor_name=body.donorName,
            donor_email=body.donorEmail,
            donor_phone=body.donorPhone,
        )
        return order.to_dict()
    
    except DonationValidationError as e:
        return error_response(400, e.message)
    except GatewayError as e:
        logger.error(f"Create-order error: {e}")
        return error_response(500, "Unable to create order")


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Optimistically confirm a payment from the checkout callback.
    
    The webhook is the final authority; a finalized donation is returned
    as stored.
    """
    ip = client_ip(request)
    if not (body.razorpay_order_id and body.razorpay_payment_id and body.razorpay_signature):
        logger.warning(f"Invalid verify payload from {ip}")
        return error_response(400, "Invalid payment data")
    
    try:
        service = VerificationService(db)
        result = await service.verify(
            order_id=body.razorpay_order_id,
            payment_id=body.razorpay_payment_id,
            signature=body.razorpay_signature,
        )
        return result.to_dict()
    
    except DonationNotFoundError:
        logger.warning(f"Verify from {ip} for unknown order {body.razorpay_order_id}")
        return error_response(404, "Donation not found")
    except SignatureVerificationError:
        logger.warning(f"Signature verification failed for request from {ip}")
        return error_response(400, "Signature verification failed")
    except DonationValidationError as e:
        return error_response(400, e.message)
    except Exception as e:
        logger.error(f"Verify route error from {ip}: {e}", exc_info=True)
        return error_response(500, "Unable to verify payment")
