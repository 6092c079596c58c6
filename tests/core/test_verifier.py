"""Tests for payment verifiers."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from clients.lnd_client import LndClientError, LndRestClient
from core.exceptions import VerifierError
from core.verifier import LndPaymentVerifier, SimulatedVerifier


class TestSimulatedVerifier:

    def test_unsettled_by_default(self, verifier, make_invoice):
        invoice = make_invoice()
        assert verifier.is_settled(invoice.payment_hash, invoice) is False

    def test_mark_settled(self, verifier, make_invoice):
        invoice = make_invoice()
        verifier.mark_settled(invoice.payment_hash)

        assert verifier.is_settled(invoice.payment_hash, invoice) is True

    def test_forget(self, verifier, make_invoice):
        invoice = make_invoice()
        verifier.mark_settled(invoice.payment_hash)
        verifier.forget(invoice.payment_hash)
        verifier.forget(invoice.payment_hash)

        assert verifier.is_settled(invoice.payment_hash, invoice) is False

    def test_settles_after_delay(self, clock, make_invoice):
        verifier = SimulatedVerifier(settle_after=timedelta(seconds=30), clock=clock)
        invoice = make_invoice()

        clock.advance(seconds=29)
        assert verifier.is_settled(invoice.payment_hash, invoice) is False

        clock.advance(seconds=1)
        assert verifier.is_settled(invoice.payment_hash, invoice) is True


class TestLndPaymentVerifier:

    @pytest.fixture
    def client(self):
        return Mock(spec=LndRestClient)

    @pytest.mark.parametrize("node_invoice,expected", [
        ({"state": "SETTLED", "settled": True}, True),
        ({"state": "OPEN", "settled": False}, False),
        ({"state": "CANCELED"}, False),
        ({"settled": True}, True),
        ({}, False),
    ])
    def test_reads_node_state(self, client, make_invoice, node_invoice, expected):
        client.lookup_invoice.return_value = node_invoice
        invoice = make_invoice()

        assert LndPaymentVerifier(client).is_settled(invoice.payment_hash, invoice) is expected
        client.lookup_invoice.assert_called_once_with(invoice.payment_hash)

    def test_client_error_becomes_verifier_error(self, client, make_invoice):
        client.lookup_invoice.side_effect = LndClientError("Connection failed")
        invoice = make_invoice()

        with pytest.raises(VerifierError, match="Connection failed"):
            LndPaymentVerifier(client).is_settled(invoice.payment_hash, invoice)
