"""Donation ledger models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from core.identifiers import new_record_id
from core.models.invoice import Invoice


class Donation(BaseModel):
    """Settled donation. Immutable once recorded."""

    id: str = Field(default_factory=new_record_id)
    donor_name: str
    recipient: str | None = None
    amount_sats: int
    payment_hash: str
    paid_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_invoice(cls, invoice: Invoice, anonymous_name: str = "Anonymous") -> "Donation":
        """
        Build the ledger record for a PAID invoice.

        Raises:
            ValueError: If the invoice has not been paid
        """
        if invoice.paid_at is None:
            raise ValueError(f"Invoice {invoice.payment_hash} has not been paid")

        return cls(
            donor_name=invoice.donor_name or anonymous_name,
            recipient=invoice.recipient,
            amount_sats=invoice.amount_sats,
            payment_hash=invoice.payment_hash,
            paid_at=invoice.paid_at,
        )


class DonationStats(BaseModel):
    """Aggregate totals across the ledger."""

    total_sats: int = 0
    donor_count: int = 0


class DonationReceipt(BaseModel):
    """Receipt for a settled donation."""

    id: str
    donor_name: str
    recipient: str | None
    amount_sats: int
    payment_hash: str
    paid_at: datetime
    transaction_id: str
    network: str

    @classmethod
    def for_donation(cls, donation: Donation, network: str) -> "DonationReceipt":
        return cls(
            **donation.model_dump(),
            transaction_id=donation.payment_hash,
            network=network,
        )


class PaymentStatus(str, Enum):
    """Status reported to pollers. NOT_FOUND is not an invoice state."""

    PENDING = "PENDING"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    NOT_FOUND = "NOT_FOUND"


class PaymentStatusReport(BaseModel):
    """Answer to "what is this invoice's status now"."""

    payment_hash: str
    status: PaymentStatus
    paid_at: datetime | None = None
