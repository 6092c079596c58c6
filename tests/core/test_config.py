"""Tests for AppConfig and get_config()."""

import pytest
from pydantic import ValidationError

from core.config import AppConfig, get_config


class TestAppConfig:

    def test_defaults(self):
        config = AppConfig()

        assert config.min_amount_sats == 100
        assert config.max_amount_sats == 1_000_000
        assert config.invoice_ttl_seconds == 3600
        assert config.network == "bitcoin"
        assert config.verifier == "simulated"
        assert config.verifier_failure_threshold == 5
        assert config.network_label == "Bitcoin Lightning Network"

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError, match="min_amount_sats"):
            AppConfig(min_amount_sats=500, max_amount_sats=100)

    def test_unknown_network_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(network="litecoin")

    def test_lnd_requires_credentials(self):
        with pytest.raises(ValidationError, match="lnd_macaroon_path"):
            AppConfig(
                verifier="lnd",
                lnd_rest_host="127.0.0.1:8080",
                lnd_tls_cert_path="/lnd/tls.cert",
            )

    def test_network_label(self):
        assert AppConfig(network="testnet").network_label == "Bitcoin Lightning Network (Testnet)"


class TestEnvironmentLoading:

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("SATSFORGOOD_MIN_AMOUNT_SATS", "1000")
        monkeypatch.setenv("SATSFORGOOD_INVOICE_TTL_SECONDS", "600")
        monkeypatch.setenv("SATSFORGOOD_NETWORK", "regtest")
        monkeypatch.setenv("SATSFORGOOD_DEBUG", "true")

        config = AppConfig()

        assert config.min_amount_sats == 1000
        assert config.invoice_ttl_seconds == 600
        assert config.network == "regtest"
        assert config.debug is True

    def test_ignores_unprefixed_and_empty_values(self, monkeypatch):
        monkeypatch.setenv("MIN_AMOUNT_SATS", "1000")
        monkeypatch.setenv("SATSFORGOOD_NETWORK", "")

        config = AppConfig()

        assert config.min_amount_sats == 100
        assert config.network == "bitcoin"

    def test_reads_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SATSFORGOOD_VERIFIER_FAILURE_THRESHOLD=9\nSATSFORGOOD_NETWORK=signet\n")
        monkeypatch.setenv("SATSFORGOOD_NETWORK", "testnet")

        config = AppConfig(_env_file=env_file)

        assert config.verifier_failure_threshold == 9
        # Process environment wins over the file
        assert config.network == "testnet"

    def test_invalid_value_fails_fast(self, monkeypatch):
        monkeypatch.setenv("SATSFORGOOD_INVOICE_TTL_SECONDS", "0")

        with pytest.raises(ValidationError):
            AppConfig()

    def test_get_config_is_cached(self, monkeypatch):
        monkeypatch.setenv("SATSFORGOOD_MIN_AMOUNT_SATS", "250")

        first = get_config()
        monkeypatch.setenv("SATSFORGOOD_MIN_AMOUNT_SATS", "500")

        assert get_config() is first
        assert first.min_amount_sats == 250
