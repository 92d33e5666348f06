"""Services package."""

from sammilan.services.donation_store import DonationStore, TransitionResult
from sammilan.services.gateway import RazorpayGateway
from sammilan.services.order_service import OrderService
from sammilan.services.verification_service import VerificationService
from sammilan.services.webhook_service import WebhookService
from sammilan.services.reconciliation_service import ReconciliationService
from sammilan.services.stats_service import StatsService

__all__ = [
    "DonationStore",
    "TransitionResult",
    "RazorpayGateway",
    "OrderService",
    "VerificationService",
    "WebhookService",
    "ReconciliationService",
    "StatsService",
]
