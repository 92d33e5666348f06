"""FSM package for donation status rules."""

from sammilan.fsm.states import (
    DonationStatus,
    TERMINAL_STATUSES,
    can_transition,
)

__all__ = [
    "DonationStatus",
    "TERMINAL_STATUSES",
    "can_transition",
]
