"""Models package for database models."""

from sammilan.models.donation import Donation, format_receipt_no

__all__ = [
    "Donation",
    "format_receipt_no",
]
