"""Application configuration.

Values come from SATSFORGOOD_* environment variables, with a local .env file
as fallback for development. Validation happens once at startup so a bad
deployment fails before serving requests.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "SATSFORGOOD_"

NETWORK_LABELS = {
    "bitcoin": "Bitcoin Lightning Network",
    "testnet": "Bitcoin Lightning Network (Testnet)",
    "signet": "Bitcoin Lightning Network (Signet)",
    "regtest": "Bitcoin Lightning Network (Regtest)",
}


class AppConfig(BaseSettings):
    """
    Donation service configuration.

    Durations are in seconds. Amounts are whole satoshis.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    # Donation bounds
    min_amount_sats: int = Field(
        default=100,
        description="Smallest accepted donation",
        ge=1,
    )
    max_amount_sats: int = Field(
        default=1_000_000,
        description="Largest accepted donation",
        ge=1,
    )

    # Invoice lifecycle
    invoice_ttl_seconds: int = Field(
        default=3600,
        description="How long an unpaid invoice stays payable",
        ge=1,
        le=7 * 24 * 3600,
    )
    min_final_cltv_expiry: int = Field(
        default=144,
        description="min_final_cltv_expiry_delta written into invoices",
        ge=1,
    )
    sweep_interval_seconds: int = Field(
        default=0,
        description="Background sweep cadence; 0 sweeps only on invoice creation",
        ge=0,
    )

    # Lightning node identity
    network: Literal["bitcoin", "testnet", "signet", "regtest"] = Field(
        default="bitcoin",
        description="Chain the invoices are issued for",
    )
    node_key_hex: str | None = Field(
        default=None,
        description="32-byte secp256k1 signing key (hex); random per process if unset",
        min_length=64,
        max_length=64,
    )

    # Display
    default_recipient: str = Field(default="SatsForGood")
    anonymous_donor_name: str = Field(default="Anonymous")
    recent_donations_limit: int = Field(default=10, ge=1, le=100)

    # Payment verification
    verifier: Literal["simulated", "lnd"] = Field(
        default="simulated",
        description="Settlement authority backing status polls",
    )
    simulated_settle_after_seconds: int | None = Field(
        default=None,
        description="Simulated verifier settles invoices older than this",
        ge=0,
    )
    verifier_failure_threshold: int = Field(
        default=5,
        description="Consecutive verifier failures before polls report unavailable",
        ge=1,
    )
    lnd_rest_host: str | None = None
    lnd_tls_cert_path: str | None = None
    lnd_macaroon_path: str | None = None

    # Server
    debug: bool = Field(
        default=False,
        description="Serve the interactive API docs",
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "AppConfig":
        if self.min_amount_sats > self.max_amount_sats:
            raise ValueError("min_amount_sats must not exceed max_amount_sats")
        if self.verifier == "lnd":
            missing = [
                name for name in ("lnd_rest_host", "lnd_tls_cert_path", "lnd_macaroon_path")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"verifier 'lnd' requires {', '.join(missing)}")
        return self

    @property
    def network_label(self) -> str:
        return NETWORK_LABELS[self.network]


@lru_cache
def get_config() -> AppConfig:
    """
    Load configuration once per process.

    Raises:
        pydantic.ValidationError: On invalid or inconsistent values
    """
    return AppConfig()
