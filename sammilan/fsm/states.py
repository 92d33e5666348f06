"""
Donation status definitions and transition rules.

Three writers race on the same donation row (client verify, Razorpay webhook,
reconciliation sweep). Status only ever moves towards finality:

    PENDING -> SUCCESS | FAILED
    FAILED  -> SUCCESS | FAILED   (a later attempt on the same order may succeed)
    SUCCESS -> REFUNDED           (refund webhook only)
    REFUNDED                      (terminal)
"""

from enum import Enum


class DonationStatus(str, Enum):
    """Status of a donation record."""
    
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    
    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


# Never overwritten by verify / webhook payment events / sweeper
TERMINAL_STATUSES = frozenset({DonationStatus.SUCCESS, DonationStatus.REFUNDED})

_ALLOWED_TRANSITIONS = {
    DonationStatus.PENDING: {DonationStatus.SUCCESS, DonationStatus.FAILED},
    DonationStatus.FAILED: {DonationStatus.SUCCESS, DonationStatus.FAILED},
    DonationStatus.SUCCESS: {DonationStatus.REFUNDED},
    DonationStatus.REFUNDED: set(),
}


def can_transition(current: DonationStatus, target: DonationStatus) -> bool:
    """Check whether a write may move a donation from `current` to `target`."""
    return DonationStatus(target) in _ALLOWED_TRANSITIONS[DonationStatus(current)]


def statuses_allowing(target: DonationStatus) -> list:
    """Source statuses from which `target` is reachable (for conditional updates)."""
    return [
        source.value
        for source, targets in _ALLOWED_TRANSITIONS.items()
        if DonationStatus(target) in targets
    ]
