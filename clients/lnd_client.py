"""
LND REST client for invoice lookups.

Reads the admin/invoice macaroon at construction and talks to the node over
HTTPS using its TLS certificate. Fail-fast: missing credentials raise at
startup, request failures raise LndClientError, never a fallback value.
"""

import json
import logging
import os

import requests

logger = logging.getLogger(__name__)


class LndClientError(Exception):
    """Raised when the LND node cannot answer a request."""


class LndRestClient:
    """
    Minimal LND REST client.

    Usage:
        client = LndRestClient("127.0.0.1:8080", "/lnd/tls.cert", "/lnd/invoice.macaroon")
        invoice = client.lookup_invoice(payment_hash_hex)
        invoice["state"]  # "OPEN" | "SETTLED" | "CANCELED" | "ACCEPTED"
    """

    def __init__(self, host: str, tls_cert_path: str, macaroon_path: str, timeout: float = 10):
        """
        Args:
            host: host:port of the REST listener
            tls_cert_path: Node TLS certificate, used to verify HTTPS
            macaroon_path: Macaroon granting invoice read access

        Raises:
            ValueError: If host is empty
            FileNotFoundError: If the macaroon file does not exist
        """
        if not host:
            raise ValueError("host is required")
        if not os.path.isfile(macaroon_path):
            raise FileNotFoundError(f"Macaroon not found at {macaroon_path}")

        with open(macaroon_path, "rb") as f:
            macaroon = f.read().hex()

        self.base_url = f"https://{host}"
        self.tls_cert_path = tls_cert_path
        self.timeout = timeout
        self._headers = {
            "Grpc-Metadata-macaroon": macaroon,
            "Content-Type": "application/json",
        }

    def lookup_invoice(self, payment_hash: str) -> dict:
        """
        Fetch the node's view of an invoice.

        Args:
            payment_hash: Hex-encoded payment hash

        Raises:
            LndClientError: On connection failure, non-2xx status or bad JSON
        """
        url = f"{self.base_url}/v1/invoice/{payment_hash}"
        try:
            response = requests.get(
                url,
                headers=self._headers,
                verify=self.tls_cert_path,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"LND connection failed: {e}")
            raise LndClientError(f"Connection failed: {e}")

        if not response.ok:
            logger.error(f"LND returned {response.status_code} for {payment_hash}")
            raise LndClientError(f"LND error {response.status_code}: {response.text}")

        try:
            return response.json()
        except json.JSONDecodeError:
            logger.error(f"LND returned invalid JSON: {response.text}")
            raise LndClientError("Invalid response from LND")
