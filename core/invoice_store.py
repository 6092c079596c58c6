"""
In-memory store of pending invoices.

Owns creation, expiry sweeps and removal. Every read-modify-write happens
under one lock and readers get immutable snapshots, so callers never write
back a stale copy.

The store also owns the per-hash locks used by the lifecycle coordinator.
Sweeps skip any payment hash that is held or pinned there, so an invoice in
the middle of settlement is never evicted underneath it.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List

from core.exceptions import InvalidAmountError, InvoiceNotFoundError, StoreIntegrityError
from core.identifiers import new_payment_hash
from core.models import Invoice, InvoiceCreate, InvoiceState
from core.state_machine import assert_transition
from utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 3

# (payment_hash, created_at) -> wire-format payment request
PaymentRequestFactory = Callable[[str, datetime], str]


class InvoiceStore:
    """
    Thread-safe mapping of payment hash to Invoice.

    Usage:
        store = InvoiceStore(min_amount_sats=100, max_amount_sats=1_000_000,
                             ttl=timedelta(hours=1))
        invoice = store.create(InvoiceCreate(amount_sats=5000), now, "Donation")
        store.get(invoice.payment_hash)
    """

    def __init__(
        self,
        min_amount_sats: int,
        max_amount_sats: int,
        ttl: timedelta,
        id_generator: Callable[[], str] = new_payment_hash,
    ):
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")

        self.min_amount_sats = min_amount_sats
        self.max_amount_sats = max_amount_sats
        self.ttl = ttl
        self._id_generator = id_generator
        self.locks = KeyedLock()
        self._lock = threading.RLock()
        self._invoices: Dict[str, Invoice] = {}

    def validate_amount(self, amount_sats: int) -> None:
        """
        Raises:
            InvalidAmountError: If amount is outside [min, max]
        """
        if not self.min_amount_sats <= amount_sats <= self.max_amount_sats:
            raise InvalidAmountError(amount_sats, self.min_amount_sats, self.max_amount_sats)

    def create(
        self,
        request: InvoiceCreate,
        now: datetime,
        description: str,
        encode: PaymentRequestFactory | None = None,
    ) -> Invoice:
        """
        Create a PENDING invoice.

        Expired, unpaid entries are evicted before the insert so abandoned
        invoices cannot accumulate.

        Args:
            request: Amount and optional donor/recipient
            now: Creation time
            description: Human-readable purpose written into the invoice
            encode: Builds the wire-format payment request; called without
                the store lock held

        Returns:
            The stored invoice

        Raises:
            InvalidAmountError: Amount out of range (nothing is stored)
            EncodingError: Propagated from encode (nothing is stored)
            StoreIntegrityError: Could not generate an unused payment hash
        """
        self.validate_amount(request.amount_sats)

        for _ in range(MAX_ID_ATTEMPTS):
            payment_hash = self._id_generator()
            invoice = Invoice(
                payment_hash=payment_hash,
                payment_request=encode(payment_hash, now) if encode else None,
                amount_sats=request.amount_sats,
                description=description,
                donor_name=request.donor_name,
                recipient=request.recipient,
                created_at=now,
                expires_at=now + self.ttl,
            )

            with self._lock:
                self._sweep_locked(now)
                if payment_hash in self._invoices:
                    logger.warning(f"Payment hash collision on {payment_hash}, regenerating")
                    continue
                self._invoices[payment_hash] = invoice

            return invoice

        raise StoreIntegrityError(
            f"Could not allocate an unused payment hash after {MAX_ID_ATTEMPTS} attempts"
        )

    def get(self, payment_hash: str) -> Invoice | None:
        """Snapshot of the invoice, or None if unknown or already removed."""
        with self._lock:
            invoice = self._invoices.get(payment_hash)

        if invoice is not None and invoice.payment_hash != payment_hash:
            raise StoreIntegrityError(
                f"Store key {payment_hash} holds invoice {invoice.payment_hash}"
            )
        return invoice

    def upsert(self, invoice: Invoice) -> None:
        """Replace the record stored under the invoice's payment hash."""
        with self._lock:
            self._invoices[invoice.payment_hash] = invoice

    def transition(self, payment_hash: str, target: InvoiceState, now: datetime) -> Invoice:
        """
        Atomically move an invoice to a new state.

        Sets paid_at when moving to PAID.

        Raises:
            InvoiceNotFoundError: No record for payment_hash
            InvalidTransitionError: Move not allowed from the current state
        """
        with self._lock:
            current = self._invoices.get(payment_hash)
            if current is None:
                raise InvoiceNotFoundError(payment_hash)

            assert_transition(current.state, target)
            updated = current.evolve(
                state=target,
                paid_at=now if target == InvoiceState.PAID else None,
            )
            self._invoices[payment_hash] = updated

        logger.info(f"Invoice {payment_hash}: {current.state.value} -> {target.value}")
        return updated

    def remove(self, payment_hash: str) -> bool:
        """
        Delete the record. Safe to call repeatedly.

        Returns True if a record was removed.
        """
        with self._lock:
            return self._invoices.pop(payment_hash, None) is not None

    def sweep(self, now: datetime) -> List[str]:
        """
        Remove every expired invoice that is not PAID.

        PAID entries are left for the coordinator to promote, and entries
        whose hash is busy in self.locks are left for the next sweep.

        Returns:
            Payment hashes that were removed
        """
        with self._lock:
            removed = self._sweep_locked(now)

        if removed:
            logger.info(f"Swept {len(removed)} expired invoice(s)")
        return removed

    def _sweep_locked(self, now: datetime) -> List[str]:
        expired = [
            payment_hash
            for payment_hash, invoice in self._invoices.items()
            if invoice.is_expired(now)
            and invoice.state != InvoiceState.PAID
            and not self.locks.is_busy(payment_hash)
        ]
        for payment_hash in expired:
            del self._invoices[payment_hash]
        return expired

    def __contains__(self, payment_hash: str) -> bool:
        with self._lock:
            return payment_hash in self._invoices

    def __len__(self) -> int:
        with self._lock:
            return len(self._invoices)
