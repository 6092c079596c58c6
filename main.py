"""
FastAPI application entry point.

Composition root for the donation backend:
- Builds the invoice store, donation ledger, verifier and lifecycle coordinator
- Wires lifecycle event handlers
- Registers routers, request-ID middleware and error handlers
- Runs the optional background expiry sweep
"""

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timedelta
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import (
    RequestIDMiddleware,
    create_donations_router,
    create_invoices_router,
    register_error_handlers,
)
from clients.invoice_encoder import Bolt11Encoder
from clients.lnd_client import LndRestClient
from clients.qr_encoder import render_qr_data_uri
from core.config import AppConfig, get_config
from core.donation_ledger import DonationLedger
from core.event_bus import EventBus
from core.events import DonationRecorded, InvoiceExpired
from core.handlers.donation_recorded_handler import handle_donation_recorded
from core.handlers.invoice_expired_handler import handle_invoice_expired
from core.invoice_store import InvoiceStore
from core.services.lifecycle_coordinator import LifecycleCoordinator
from core.verifier import LndPaymentVerifier, SimulatedVerifier
from utils.timezone import now_utc

__version__ = "0.1.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


def build_verifier(config: AppConfig, clock: Callable[[], datetime] = now_utc):
    if config.verifier == "lnd":
        client = LndRestClient(
            config.lnd_rest_host,
            config.lnd_tls_cert_path,
            config.lnd_macaroon_path,
        )
        return LndPaymentVerifier(client)

    settle_after = None
    if config.simulated_settle_after_seconds is not None:
        settle_after = timedelta(seconds=config.simulated_settle_after_seconds)
    return SimulatedVerifier(settle_after=settle_after, clock=clock)


def build_services(
    config: AppConfig,
    verifier=None,
    clock: Callable[[], datetime] = now_utc,
) -> dict:
    """
    Construct and wire every service the routers need.

    Args:
        config: Application configuration
        verifier: Overrides the verifier selected by config
        clock: Source of the current time
    """
    event_bus = EventBus()
    verifier = verifier or build_verifier(config, clock)

    store = InvoiceStore(
        min_amount_sats=config.min_amount_sats,
        max_amount_sats=config.max_amount_sats,
        ttl=timedelta(seconds=config.invoice_ttl_seconds),
    )

    if config.node_key_hex:
        signing_key = bytes.fromhex(config.node_key_hex)
    else:
        signing_key = secrets.token_bytes(32)
        logger.warning("No node key configured; generated an ephemeral signing key")

    lifecycle = LifecycleCoordinator(
        store=store,
        ledger=DonationLedger(),
        verifier=verifier,
        event_bus=event_bus,
        config=config,
        encoder=Bolt11Encoder(config.network),
        signing_key=signing_key,
        clock=clock,
    )

    event_bus.subscribe(
        DonationRecorded,
        handle_donation_recorded(logging.getLogger("donations")),
    )
    if isinstance(verifier, SimulatedVerifier):
        event_bus.subscribe(InvoiceExpired, handle_invoice_expired(verifier))

    return {
        "lifecycle": lifecycle,
        "verifier": verifier,
        "event_bus": event_bus,
        "qr": render_qr_data_uri,
    }


async def _sweep_periodically(lifecycle: LifecycleCoordinator, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            lifecycle.sweep()
        except Exception:
            logger.exception("Background sweep failed")


def create_app(config: AppConfig | None = None, services: dict | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration (loaded from the environment if omitted)
        services: Prebuilt services (built from config if omitted)
    """
    config = config or get_config()
    services = services or build_services(config)
    lifecycle = services["lifecycle"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting SatsForGood v{__version__}")
        logger.info(f"Network: {config.network}, verifier: {config.verifier}")

        sweeper = None
        if config.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(
                _sweep_periodically(lifecycle, config.sweep_interval_seconds)
            )
            logger.info(f"Background sweep every {config.sweep_interval_seconds}s")

        yield

        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        logger.info("Shutting down SatsForGood")

    app = FastAPI(
        title="SatsForGood API",
        description="Lightning donation invoices, payment status and donation ledger.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    app.include_router(create_invoices_router(services), prefix="/api")
    app.include_router(create_donations_router(services), prefix="/api")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=3001)
