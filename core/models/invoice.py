"""Invoice domain models.

Amounts are whole satoshis. An invoice lives in the invoice store while it is
PENDING (or briefly EXPIRED) and is deleted from the store once promoted into
the donation ledger.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class InvoiceState(str, Enum):
    """Invoice lifecycle state. PAID and EXPIRED are terminal."""

    PENDING = "PENDING"
    PAID = "PAID"
    EXPIRED = "EXPIRED"


class InvoiceCreate(BaseModel):
    """Data required to request a donation invoice."""

    amount_sats: int
    donor_name: str | None = Field(None, max_length=100)
    recipient: str | None = Field(None, max_length=100)


class Invoice(BaseModel):
    """Pending payment request as held by the invoice store."""

    payment_hash: str = Field(..., min_length=64, max_length=64)
    payment_request: str | None = None
    amount_sats: int = Field(..., gt=0)
    description: str
    donor_name: str | None = None
    recipient: str | None = None
    created_at: datetime
    expires_at: datetime
    state: InvoiceState = InvoiceState.PENDING
    paid_at: datetime | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_invariants(self) -> "Invoice":
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")
        if (self.state == InvoiceState.PAID) != (self.paid_at is not None):
            raise ValueError("paid_at must be set exactly when state is PAID")
        return self

    def evolve(self, **changes: Any) -> "Invoice":
        """
        Copy with changes applied, re-running validation.

        model_copy(update=...) skips validators, so state changes go
        through here instead.
        """
        return Invoice(**{**self.model_dump(), **changes})

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def seconds_remaining(self, now: datetime) -> int:
        return max(int((self.expires_at - now).total_seconds()), 0)
