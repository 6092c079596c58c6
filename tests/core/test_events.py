"""Tests for lifecycle event objects."""

import dataclasses

import pytest

from core.events import (
    DonationEvent,
    DonationRecorded,
    InvoiceCreated,
    InvoiceEvent,
    InvoiceExpired,
    InvoicePaid,
    LifecycleEvent,
)


class TestLifecycleEvents:

    @pytest.mark.parametrize("event_class", [InvoiceCreated, InvoicePaid, InvoiceExpired])
    def test_invoice_events_carry_invoice(self, event_class, make_invoice):
        invoice = make_invoice()

        event = event_class.create(invoice)

        assert isinstance(event, InvoiceEvent)
        assert isinstance(event, LifecycleEvent)
        assert event.invoice is invoice

    def test_donation_recorded(self):
        event = DonationRecorded.create(donation="donation")

        assert isinstance(event, DonationEvent)
        assert event.donation == "donation"

    def test_events_get_unique_ids_and_utc_time(self):
        first = InvoicePaid.create(invoice=None)
        second = InvoicePaid.create(invoice=None)

        assert first.event_id != second.event_id
        assert first.occurred_at.tzinfo is not None

    def test_events_are_immutable(self):
        event = InvoicePaid.create(invoice=None)
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.invoice = "other"
