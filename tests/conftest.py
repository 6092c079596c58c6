"""Shared test fixtures for the donation backend test suite."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from core.config import ENV_PREFIX, AppConfig, get_config
from core.donation_ledger import DonationLedger
from core.event_bus import EventBus
from core.invoice_store import InvoiceStore
from core.models import Invoice, InvoiceState
from core.services.lifecycle_coordinator import LifecycleCoordinator
from core.verifier import SimulatedVerifier


EVENT_TYPES = ("InvoiceCreated", "InvoicePaid", "InvoiceExpired", "DonationRecorded")

TEST_NODE_KEY_HEX = "e126f68f7eafcc8b74f54d269fe206be715000f94dac067d1c04a8ca3b2db734"


# =============================================================================
# ENVIRONMENT
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host SATSFORGOOD_* variables and any local .env out of AppConfig."""
    for name in list(os.environ):
        if name.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    monkeypatch.setitem(AppConfig.model_config, "env_file", None)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


# =============================================================================
# CLOCK
# =============================================================================


class FakeClock:
    """Controllable clock. Call it for the current time, advance() to move on."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def node_key() -> bytes:
    """Fixed secp256k1 node secret so signatures are reproducible."""
    return bytes.fromhex(TEST_NODE_KEY_HEX)


# =============================================================================
# CORE FIXTURES
# =============================================================================


@pytest.fixture
def config() -> AppConfig:
    """Defaults: 100..1_000_000 sats, one hour TTL."""
    return AppConfig()


@pytest.fixture
def store(config) -> InvoiceStore:
    return InvoiceStore(
        min_amount_sats=config.min_amount_sats,
        max_amount_sats=config.max_amount_sats,
        ttl=timedelta(seconds=config.invoice_ttl_seconds),
    )


@pytest.fixture
def ledger() -> DonationLedger:
    return DonationLedger()


@pytest.fixture
def verifier(clock) -> SimulatedVerifier:
    return SimulatedVerifier(clock=clock)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(event_bus) -> list:
    """Every lifecycle event published on event_bus, in order."""
    received = []
    for event_type in EVENT_TYPES:
        event_bus.subscribe(event_type, received.append)
    return received


@pytest.fixture
def coordinator(store, ledger, verifier, event_bus, config, clock) -> LifecycleCoordinator:
    """Coordinator without an encoder, so invoices carry no payment request."""
    return LifecycleCoordinator(
        store=store,
        ledger=ledger,
        verifier=verifier,
        event_bus=event_bus,
        config=config,
        clock=clock,
    )


@pytest.fixture
def make_invoice(clock):
    """Factory for standalone Invoice objects."""

    def _make(**overrides) -> Invoice:
        values = {
            "payment_hash": "ab" * 32,
            "amount_sats": 5000,
            "description": "Donation of 5000 sats to SatsForGood",
            "created_at": clock.now,
            "expires_at": clock.now + timedelta(hours=1),
            "state": InvoiceState.PENDING,
        }
        values.update(overrides)
        return Invoice(**values)

    return _make
