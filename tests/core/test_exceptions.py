"""Tests for the lifecycle exception hierarchy."""

from core.exceptions import (
    DonationError,
    DonationNotFoundError,
    InvalidAmountError,
    InvalidTransitionError,
    InvoiceNotFoundError,
    NotFoundError,
    VerifierUnavailableError,
)


def test_not_found_errors_share_base():
    assert issubclass(InvoiceNotFoundError, NotFoundError)
    assert issubclass(DonationNotFoundError, NotFoundError)
    assert issubclass(NotFoundError, DonationError)


def test_invalid_amount_message():
    exc = InvalidAmountError(50, 100, 1_000_000)
    assert str(exc) == "Amount 50 sats is outside the allowed range [100, 1000000]"


def test_invalid_transition_message():
    assert str(InvalidTransitionError("PAID", "EXPIRED")) == "Illegal invoice transition: PAID -> EXPIRED"


def test_verifier_unavailable_keeps_count():
    assert VerifierUnavailableError(7).consecutive_failures == 7
