"""
Handler for InvoiceExpired events.

Drops any operator-marked settlement for the expired payment hash so the
simulated verifier does not keep state for invoices that can no longer pay.
"""

from typing import Callable

from core.events import InvoiceExpired


def handle_invoice_expired(verifier) -> Callable:
    """
    Factory that returns an InvoiceExpired handler.

    Args:
        verifier: SimulatedVerifier instance

    Returns:
        Handler callable
    """

    def handler(event: InvoiceExpired):
        verifier.forget(event.invoice.payment_hash)

    return handler
