"""Allowed invoice state transitions.

Transitions only move forward. PAID and EXPIRED are terminal, so a paid invoice
is never overwritten by a late expiry check and an expired invoice is never
resurrected by a late settlement.
"""

from core.exceptions import InvalidTransitionError
from core.models import InvoiceState


ALLOWED = {
    InvoiceState.PENDING: {InvoiceState.PAID, InvoiceState.EXPIRED},
    InvoiceState.PAID: set(),
    InvoiceState.EXPIRED: set(),
}


def can_transition(current: InvoiceState, target: InvoiceState) -> bool:
    return target in ALLOWED.get(current, set())


def assert_transition(current: InvoiceState, target: InvoiceState) -> None:
    """
    Raises:
        InvalidTransitionError: If current -> target is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
