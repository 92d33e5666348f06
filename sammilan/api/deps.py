from typing import Optional

from fastapi import Header, HTTPException, status

from sammilan.config import settings
from sammilan.services.gateway import RazorpayGateway


async def get_admin_user(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> str:
    """
    Validate the Admin Key header.
    Returns the key if valid, raises 401 otherwise.
    """
    if not x_admin_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing admin key",
        )
    
    valid_key = settings.admin_api_key
    if not valid_key or x_admin_key != valid_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )
    
    return x_admin_key


async def verify_cron_secret(
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret"),
) -> None:
    """
    Guard for the reconciliation trigger.
    Open when no secret is configured outside production.
    """
    expected = settings.cron_secret
    if not expected:
        if settings.is_production:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Cron secret not configured",
            )
        return
    
    if x_cron_secret != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )


def get_gateway() -> RazorpayGateway:
    """Dependency for the Razorpay gateway client."""
    return RazorpayGateway()
