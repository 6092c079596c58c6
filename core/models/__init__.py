"""Core domain models."""

from core.models.invoice import Invoice, InvoiceCreate, InvoiceState
from core.models.donation import (
    Donation,
    DonationStats,
    DonationReceipt,
    PaymentStatus,
    PaymentStatusReport,
)

__all__ = [
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceState",
    # Donation
    "Donation", "DonationStats", "DonationReceipt",
    # Status
    "PaymentStatus", "PaymentStatusReport",
]
