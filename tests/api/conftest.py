"""API test fixtures - TestClient over the fully wired application."""

import pytest
from starlette.testclient import TestClient

from core.config import AppConfig
from main import build_services, create_app


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def api_config(node_key) -> AppConfig:
    return AppConfig(node_key_hex=node_key.hex())


@pytest.fixture
def services(api_config, verifier, clock):
    """Production wiring with the simulated verifier and a fake clock."""
    return build_services(api_config, verifier=verifier, clock=clock)


@pytest.fixture
def lifecycle(services):
    return services["lifecycle"]


# =============================================================================
# APP & CLIENT
# =============================================================================


@pytest.fixture
def app(api_config, services):
    return create_app(api_config, services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def create_invoice(client):
    """POST /api/invoices and return the response data."""

    def _create(amount_sats: int = 5000, **fields) -> dict:
        response = client.post("/api/invoices", json={"amount_sats": amount_sats, **fields})
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _create
