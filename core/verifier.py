"""
Payment verification.

A verifier answers one question: has this payment hash settled? It never
touches the invoice store or the donation ledger. The lifecycle coordinator
does all state changes after the answer comes back, so a verifier can be
swapped without affecting transition or promotion guarantees.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Protocol, Set

from clients.lnd_client import LndClientError, LndRestClient
from core.exceptions import VerifierError
from core.models import Invoice
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class PaymentVerifier(Protocol):
    """Settlement authority consulted by status polls."""

    def is_settled(self, payment_hash: str, invoice: Invoice) -> bool:
        """
        Whether the payment for payment_hash has settled.

        Raises:
            VerifierError: If the settlement authority cannot be reached
        """
        ...


class SimulatedVerifier:
    """
    Stand-in settlement authority for demos and tests.

    A payment counts as settled once an operator calls mark_settled(), or,
    when settle_after is set, once the invoice is at least that old.
    Production deployments replace this with a node-backed verifier.
    """

    def __init__(
        self,
        settle_after: timedelta | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.settle_after = settle_after
        self._clock = clock
        self._lock = threading.Lock()
        self._settled: Set[str] = set()

    def mark_settled(self, payment_hash: str) -> None:
        with self._lock:
            self._settled.add(payment_hash)

    def forget(self, payment_hash: str) -> None:
        with self._lock:
            self._settled.discard(payment_hash)

    def is_settled(self, payment_hash: str, invoice: Invoice) -> bool:
        with self._lock:
            if payment_hash in self._settled:
                return True

        if self.settle_after is not None:
            return self._clock() - invoice.created_at >= self.settle_after
        return False


class LndPaymentVerifier:
    """Verifier backed by an LND node's invoice database."""

    def __init__(self, client: LndRestClient):
        self._client = client

    def is_settled(self, payment_hash: str, invoice: Invoice) -> bool:
        try:
            node_invoice = self._client.lookup_invoice(payment_hash)
        except LndClientError as e:
            raise VerifierError(f"LND lookup failed for {payment_hash}: {e}") from e

        settled = node_invoice.get("state") == "SETTLED" or bool(node_invoice.get("settled"))
        logger.debug(f"LND reports {payment_hash} settled={settled}")
        return settled
