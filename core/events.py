"""
Domain events for the donation lifecycle.

Immutable event objects describing invoice and ledger state changes. The
lifecycle coordinator publishes them after the change is in place, so
handlers observe settled facts and never need to re-read the store.

Event Categories:
- InvoiceEvent: Invoice lifecycle (created, paid, expired)
- DonationEvent: Ledger lifecycle (recorded)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class LifecycleEvent:
    """Base class for all donation lifecycle events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(LifecycleEvent):
    """Events related to invoice lifecycle."""
    pass


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """A new PENDING invoice was issued."""
    invoice: Any = None  # Invoice

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceCreated":
        return cls(invoice=invoice)


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice moved PENDING -> PAID."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoicePaid":
        return cls(invoice=invoice)


@dataclass(frozen=True)
class InvoiceExpired(InvoiceEvent):
    """Invoice moved PENDING -> EXPIRED and left the store."""
    invoice: Any = None

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceExpired":
        return cls(invoice=invoice)


# =============================================================================
# DONATION EVENTS
# =============================================================================


@dataclass(frozen=True)
class DonationEvent(LifecycleEvent):
    """Events related to the donation ledger."""
    pass


@dataclass(frozen=True)
class DonationRecorded(DonationEvent):
    """A paid invoice was promoted into the ledger. Published once per payment."""
    donation: Any = None  # Donation

    @classmethod
    def create(cls, donation: Any) -> "DonationRecorded":
        return cls(donation=donation)
