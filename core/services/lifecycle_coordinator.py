"""
Invoice lifecycle coordinator.

Answers "what is this invoice's status now" by consulting, in order, the
donation ledger, the invoice store (expiry), and the payment verifier. A
settled invoice is promoted into the ledger and removed from the store.

Transition and promotion for one payment hash run under the store's per-hash
lock, so concurrent pollers cannot both record the same payment. The verifier
is queried with no lock held but with the hash pinned, which keeps expiry
sweeps away from it; its answer is re-validated against the store once the
lock is taken.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List

from core.config import AppConfig
from core.donation_ledger import DonationLedger
from core.event_bus import EventBus
from core.events import (
    DonationRecorded,
    InvoiceCreated,
    InvoiceExpired,
    InvoicePaid,
    LifecycleEvent,
)
from core.exceptions import (
    DonationNotFoundError,
    InvoiceNotFoundError,
    StoreIntegrityError,
    VerifierError,
    VerifierUnavailableError,
)
from core.invoice_store import InvoiceStore
from core.models import (
    Donation,
    DonationReceipt,
    DonationStats,
    Invoice,
    InvoiceCreate,
    InvoiceState,
    PaymentStatus,
    PaymentStatusReport,
)
from core.verifier import PaymentVerifier
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class LifecycleCoordinator:
    """Drives invoices from PENDING to PAID or EXPIRED."""

    def __init__(
        self,
        store: InvoiceStore,
        ledger: DonationLedger,
        verifier: PaymentVerifier,
        event_bus: EventBus,
        config: AppConfig,
        encoder=None,
        signing_key: bytes | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        """
        Args:
            store: Pending invoice store
            ledger: Settled donation ledger
            verifier: Settlement authority for status polls
            event_bus: Receives lifecycle events after each change
            config: Application configuration
            encoder: Builds wire-format payment requests (None skips encoding)
            signing_key: 32-byte node key passed to the encoder
            clock: Source of the current time

        Raises:
            ValueError: If an encoder is given without a signing key
        """
        if encoder is not None and signing_key is None:
            raise ValueError("signing_key is required when an encoder is configured")

        self.store = store
        self.ledger = ledger
        self.verifier = verifier
        self.event_bus = event_bus
        self.config = config
        self._encoder = encoder
        self._signing_key = signing_key
        self._clock = clock
        self._locks = store.locks
        self._failure_lock = threading.Lock()
        self._verifier_failures = 0

    # -------------------------------------------------------------------------
    # Invoice creation
    # -------------------------------------------------------------------------

    def create_invoice(self, request: InvoiceCreate) -> Invoice:
        """
        Issue a new PENDING invoice.

        Raises:
            InvalidAmountError: Amount outside the configured bounds
            EncodingError: The payment request could not be encoded
        """
        now = self._clock()
        recipient = request.recipient or self.config.default_recipient
        description = f"Donation of {request.amount_sats} sats to {recipient}"

        encode = None
        if self._encoder is not None:
            def encode(payment_hash: str, created_at: datetime) -> str:
                return self._encoder.encode(
                    amount_sats=request.amount_sats,
                    description=description,
                    payment_hash=payment_hash,
                    expiry_seconds=self.config.invoice_ttl_seconds,
                    signing_key=self._signing_key,
                    timestamp=created_at,
                    min_final_cltv_expiry=self.config.min_final_cltv_expiry,
                )

        invoice = self.store.create(request, now, description, encode)
        logger.info(
            f"Created invoice: {invoice.amount_sats} sats to {recipient} "
            f"(payment_hash={invoice.payment_hash})"
        )

        self.event_bus.publish(InvoiceCreated.create(invoice))
        return invoice

    def expires_in(self, invoice: Invoice) -> int:
        """Seconds until the invoice expires, never negative."""
        return invoice.seconds_remaining(self._clock())

    # -------------------------------------------------------------------------
    # Status reconciliation
    # -------------------------------------------------------------------------

    def check_status(self, payment_hash: str) -> PaymentStatusReport:
        """
        Current status, consulting the verifier for pending invoices.

        Unknown payment hashes report NOT_FOUND, never an error.

        Raises:
            VerifierUnavailableError: Verifier failures reached the threshold
        """
        return self._reconcile(payment_hash, confirmed=False)

    def confirm_payment(self, payment_hash: str) -> PaymentStatusReport:
        """
        Operator-initiated settlement, bypassing the verifier.

        Expired and unknown invoices are reported as such; only a PENDING,
        unexpired invoice becomes PAID.
        """
        logger.info(f"Manual confirmation requested for {payment_hash}")
        return self._reconcile(payment_hash, confirmed=True)

    def _reconcile(self, payment_hash: str, confirmed: bool) -> PaymentStatusReport:
        donation = self.ledger.find(payment_hash)
        if donation is not None:
            return self._paid_report(donation)

        events: List[LifecycleEvent] = []

        # Pinned hashes are skipped by store sweeps while the verifier runs.
        with self._locks.pin(payment_hash):
            invoice = self.store.get(payment_hash)
            if invoice is None:
                return self._missing_report(payment_hash)

            verified = False
            if (
                not confirmed
                and invoice.state == InvoiceState.PENDING
                and not invoice.is_expired(self._clock())
            ):
                verified = self._query_verifier(invoice)

            with self._locks.hold(payment_hash):
                report = self._apply_locked(payment_hash, confirmed or verified, verified, events)

        self.event_bus.publish_all(events)
        return report

    def _apply_locked(
        self,
        payment_hash: str,
        settled: bool,
        verified: bool,
        events: List[LifecycleEvent],
    ) -> PaymentStatusReport:
        """
        Re-read state and apply the transition. Caller holds the hash lock.

        A positive verifier answer was given for an invoice that was unexpired
        when it was asked, so it is honoured even if expiry passed during the
        query. Everything else is judged against the time read here.
        """
        now = self._clock()

        donation = self.ledger.find(payment_hash)
        if donation is not None:
            return self._paid_report(donation)

        invoice = self.store.get(payment_hash)
        if invoice is None:
            return self._missing_report(payment_hash)

        if invoice.state == InvoiceState.PAID:
            # An earlier confirmation marked it PAID but did not finish promotion.
            return self._promote_locked(invoice, events)

        if invoice.state == InvoiceState.EXPIRED:
            self.store.remove(payment_hash)
            return PaymentStatusReport(payment_hash=payment_hash, status=PaymentStatus.EXPIRED)

        if invoice.is_expired(now) and not verified:
            try:
                expired = self.store.transition(payment_hash, InvoiceState.EXPIRED, now)
            except InvoiceNotFoundError:
                return self._missing_report(payment_hash)
            self.store.remove(payment_hash)
            logger.info(f"Invoice expired: {payment_hash}")
            events.append(InvoiceExpired.create(expired))
            return PaymentStatusReport(payment_hash=payment_hash, status=PaymentStatus.EXPIRED)

        if not settled:
            return PaymentStatusReport(payment_hash=payment_hash, status=PaymentStatus.PENDING)

        try:
            paid = self.store.transition(payment_hash, InvoiceState.PAID, now)
        except InvoiceNotFoundError:
            return self._missing_report(payment_hash)
        events.append(InvoicePaid.create(paid))
        return self._promote_locked(paid, events)

    def _missing_report(self, payment_hash: str) -> PaymentStatusReport:
        """Report for a hash the store no longer holds."""
        # Promotion appends before it removes, so recheck the ledger.
        donation = self.ledger.find(payment_hash)
        if donation is not None:
            return self._paid_report(donation)
        logger.info(f"Invoice not found: {payment_hash}")
        return PaymentStatusReport(payment_hash=payment_hash, status=PaymentStatus.NOT_FOUND)

    def _promote_locked(self, invoice: Invoice, events: List[LifecycleEvent]) -> PaymentStatusReport:
        """
        Move a PAID invoice into the ledger and out of the store.

        If the ledger append fails the invoice is put back to PENDING before
        the error propagates, so it is never PAID in the store without a
        ledger entry on the way out.
        """
        donation = Donation.from_invoice(invoice, self.config.anonymous_donor_name)

        try:
            added = self.ledger.append(donation)
        except Exception:
            logger.exception(f"Promotion failed for {invoice.payment_hash}, rolling back to PENDING")
            self.store.upsert(invoice.evolve(state=InvoiceState.PENDING, paid_at=None))
            raise

        self.store.remove(invoice.payment_hash)

        recorded = donation if added else self.ledger.find(invoice.payment_hash)
        if recorded is None:
            raise StoreIntegrityError(
                f"Ledger rejected {invoice.payment_hash} as duplicate but has no entry for it"
            )

        if added:
            logger.info(
                f"Payment confirmed: {recorded.amount_sats} sats from {recorded.donor_name} "
                f"(payment_hash={recorded.payment_hash})"
            )
            events.append(DonationRecorded.create(recorded))

        return self._paid_report(recorded)

    def _query_verifier(self, invoice: Invoice) -> bool:
        """
        Ask the verifier whether the invoice settled.

        A verifier failure counts as "not settled" until consecutive failures
        reach the configured threshold.
        """
        try:
            settled = self.verifier.is_settled(invoice.payment_hash, invoice)
        except VerifierError as e:
            with self._failure_lock:
                self._verifier_failures += 1
                failures = self._verifier_failures

            if failures >= self.config.verifier_failure_threshold:
                logger.error(f"Payment verifier unavailable ({failures} consecutive failures): {e}")
                raise VerifierUnavailableError(failures) from e

            logger.warning(f"Payment verifier failed for {invoice.payment_hash}, reporting PENDING: {e}")
            return False

        with self._failure_lock:
            self._verifier_failures = 0
        return settled

    @property
    def verifier_failures(self) -> int:
        with self._failure_lock:
            return self._verifier_failures

    @staticmethod
    def _paid_report(donation: Donation) -> PaymentStatusReport:
        return PaymentStatusReport(
            payment_hash=donation.payment_hash,
            status=PaymentStatus.PAID,
            paid_at=donation.paid_at,
        )

    # -------------------------------------------------------------------------
    # Ledger queries
    # -------------------------------------------------------------------------

    def stats(self) -> DonationStats:
        return self.ledger.stats()

    def recent(self, limit: int | None = None) -> List[Donation]:
        return self.ledger.recent(limit or self.config.recent_donations_limit)

    def receipt(self, payment_hash: str) -> DonationReceipt:
        """
        Receipt for a settled donation.

        Raises:
            DonationNotFoundError: Payment hash unknown or not settled
        """
        donation = self.ledger.find(payment_hash)
        if donation is None:
            raise DonationNotFoundError(payment_hash)
        return DonationReceipt.for_donation(donation, self.config.network_label)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def sweep(self) -> List[str]:
        """Evict expired, unpaid invoices. PAID invoices are left for promotion."""
        return self.store.sweep(self._clock())
