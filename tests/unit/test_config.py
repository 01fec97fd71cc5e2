"""Unit tests for settings loading."""

from unittest.mock import patch

from payment_adapters.adapters import MockAdapter
from payment_adapters.config import Settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.test_mode is True
        assert settings.ssl_strict is True
        assert settings.timeout_seconds == 10.0
        assert settings.log_wire_transcripts is False
        assert settings.borgun.terminal_id == "1"
        assert settings.mock.default_response == "authorized"

    def test_top_level_environment_variables(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_ADAPTERS_SSL_STRICT", "false")
        monkeypatch.setenv("PAYMENT_ADAPTERS_TIMEOUT_SECONDS", "3.5")
        monkeypatch.setenv("PAYMENT_ADAPTERS_TEST_MODE", "0")

        settings = Settings(_env_file=None)

        assert settings.ssl_strict is False
        assert settings.timeout_seconds == 3.5
        assert settings.test_mode is False

    def test_nested_delimiter(self, monkeypatch):
        """Test that processor credentials load through the nested delimiter."""
        monkeypatch.setenv("PAYMENT_ADAPTERS_BORGUN__MERCHANT_ID", "42")
        monkeypatch.setenv("PAYMENT_ADAPTERS_BORGUN__USERNAME", "borgun_user")
        monkeypatch.setenv("PAYMENT_ADAPTERS_MOCK__LATENCY_MS", "25")

        settings = Settings(_env_file=None)

        assert settings.borgun.merchant_id == "42"
        assert settings.borgun.username == "borgun_user"
        assert settings.mock.latency_ms == 25

    def test_processor_prefix(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_ADAPTERS_COMMERCE_HUB_API_KEY", "env_key")

        settings = Settings(_env_file=None)

        assert settings.commerce_hub.api_key == "env_key"

    def test_unprefixed_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("USERNAME", "someone")
        monkeypatch.setenv("SSL_STRICT", "false")

        settings = Settings(_env_file=None)

        assert settings.borgun.username == ""
        assert settings.ssl_strict is True


class TestAdapterDefaults:
    """Tests for adapters picking up settings."""

    def test_adapter_defaults_come_from_settings(self):
        with patch("payment_adapters.adapters.base.settings") as mock_settings:
            mock_settings.test_mode = False
            mock_settings.ssl_strict = False
            mock_settings.timeout_seconds = 2.0

            adapter = MockAdapter()

        assert adapter.test is False
        assert adapter.ssl_strict is False
        assert adapter.timeout_seconds == 2.0

    def test_explicit_values_win(self):
        with patch("payment_adapters.adapters.base.settings") as mock_settings:
            mock_settings.test_mode = False
            mock_settings.ssl_strict = False
            mock_settings.timeout_seconds = 2.0

            adapter = MockAdapter(test=True, ssl_strict=True, timeout_seconds=7.0)

        assert adapter.test is True
        assert adapter.ssl_strict is True
        assert adapter.timeout_seconds == 7.0
