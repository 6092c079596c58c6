"""
Append-only ledger of settled donations.

Each payment hash appears at most once. The duplicate check and the insert
share one critical section, and totals are maintained under the same lock so
stats() always matches the entries.
"""

import logging
import threading
from typing import Dict, List

from core.models import Donation, DonationStats

logger = logging.getLogger(__name__)


class DonationLedger:
    """In-memory, deduplicated donation ledger."""

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: List[Donation] = []
        self._by_payment_hash: Dict[str, Donation] = {}
        self._total_sats = 0

    def contains(self, payment_hash: str) -> bool:
        with self._lock:
            return payment_hash in self._by_payment_hash

    def append(self, donation: Donation) -> bool:
        """
        Record a donation unless its payment hash is already present.

        Returns:
            True if appended, False if it was a duplicate (no-op)
        """
        with self._lock:
            if donation.payment_hash in self._by_payment_hash:
                return False
            self._entries.append(donation)
            self._by_payment_hash[donation.payment_hash] = donation
            self._total_sats += donation.amount_sats

        logger.info(
            f"Donation recorded: {donation.amount_sats} sats from {donation.donor_name} "
            f"(payment_hash={donation.payment_hash})"
        )
        return True

    def find(self, payment_hash: str) -> Donation | None:
        with self._lock:
            return self._by_payment_hash.get(payment_hash)

    def stats(self) -> DonationStats:
        with self._lock:
            return DonationStats(
                total_sats=self._total_sats,
                donor_count=len(self._entries),
            )

    def recent(self, n: int) -> List[Donation]:
        """Newest n donations, newest first. Later calls see new arrivals."""
        if n <= 0:
            return []
        with self._lock:
            return list(reversed(self._entries[-n:]))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
