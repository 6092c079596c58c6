"""Typed exceptions for the invoice lifecycle."""


class DonationError(Exception):
    """Base class for donation lifecycle errors."""


class InvalidAmountError(DonationError):
    """Requested amount is outside the accepted donation range."""

    def __init__(self, amount: int, minimum: int, maximum: int):
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Amount {amount} sats is outside the allowed range "
            f"[{minimum}, {maximum}]"
        )


class NotFoundError(DonationError):
    """Identifier is unknown or has already been cleaned up."""


class InvoiceNotFoundError(NotFoundError):
    """No pending invoice exists for the payment hash."""

    def __init__(self, payment_hash: str):
        self.payment_hash = payment_hash
        super().__init__(f"Invoice {payment_hash} not found")


class DonationNotFoundError(NotFoundError):
    """No settled donation exists for the payment hash."""

    def __init__(self, payment_hash: str):
        self.payment_hash = payment_hash
        super().__init__(f"Donation {payment_hash} not found")


class EncodingError(DonationError):
    """
    Building the wire-format payment request failed.

    Surfaced to callers as an internal error. Never retried automatically.
    """


class VerifierError(DonationError):
    """
    The settlement authority could not be reached.

    Treated as "not settled yet" for the poll that hit it.
    """


class VerifierUnavailableError(DonationError):
    """Verifier failures crossed the operational threshold."""

    def __init__(self, consecutive_failures: int):
        self.consecutive_failures = consecutive_failures
        super().__init__(
            f"Payment verifier unavailable after {consecutive_failures} consecutive failures"
        )


class InvalidTransitionError(DonationError):
    """A state change that the invoice state machine does not allow."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal invoice transition: {current} -> {target}")


class StoreIntegrityError(DonationError):
    """
    An invariant of the invoice store or ledger was violated.

    Fatal. Never converted into a status answer.
    """
