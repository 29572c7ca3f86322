"""Unit tests for device_exchange.core.config module."""

import logging
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from device_exchange.core.config import ExchangeSettings, IssuerConfig


@pytest.mark.unit
class TestIssuerConfig:
    """Tests for the immutable handler configuration."""

    def test_defaults(self):
        config = IssuerConfig()
        assert config.user_property == "user"
        assert config.separators == (" ",)

    def test_single_separator_is_normalized_to_sequence(self):
        assert IssuerConfig(separators=",").separators == (",",)

    def test_separator_list_keeps_priority_order(self):
        assert IssuerConfig(separators=[",", " "]).separators == (",", " ")

    def test_none_separator_uses_default(self):
        assert IssuerConfig(separators=None).separators == (" ",)

    @pytest.mark.parametrize("separators", [[], [""], [" ", ""]])
    def test_rejects_empty_separators(self, separators):
        with pytest.raises(ValidationError):
            IssuerConfig(separators=separators)

    def test_rejects_empty_user_property(self):
        with pytest.raises(ValidationError):
            IssuerConfig(user_property="")

    def test_is_frozen(self):
        config = IssuerConfig()
        with pytest.raises(ValidationError):
            config.user_property = "client"


@pytest.mark.unit
class TestExchangeSettings:
    """Tests for environment-backed settings."""

    def test_defaults(self, monkeypatch):
        for name in ("USER_PROPERTY", "SCOPE_SEPARATORS", "API_PREFIX", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = ExchangeSettings(_env_file=None)

        assert settings.user_property == "user"
        assert settings.scope_separators == [" "]
        assert settings.token_url == "/oauth2/token"

    def test_loads_from_environment(self, monkeypatch):
        monkeypatch.setenv("USER_PROPERTY", "client")
        monkeypatch.setenv("SCOPE_SEPARATORS", '[" ", ","]')
        monkeypatch.setenv("API_PREFIX", "/auth/")

        settings = ExchangeSettings(_env_file=None)

        assert settings.user_property == "client"
        assert settings.scope_separators == [" ", ","]
        assert settings.token_url == "/auth/oauth2/token"

    def test_api_prefix_gets_leading_slash(self):
        assert ExchangeSettings(_env_file=None, api_prefix="gateway").api_prefix == "/gateway"

    def test_issuer_config(self):
        settings = ExchangeSettings(_env_file=None, user_property="client", scope_separators=[",", " "])
        config = settings.issuer_config()

        assert config == IssuerConfig(user_property="client", separators=(",", " "))

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValidationError):
            ExchangeSettings(_env_file=None, log_level="verbose")

    def test_configure_logging_uses_level_and_format(self):
        settings = ExchangeSettings(_env_file=None, log_level="debug")
        with patch("device_exchange.core.config.logging.basicConfig") as mock_basic_config:
            settings.configure_logging()

        mock_basic_config.assert_called_once_with(level=logging.DEBUG, format=settings.log_format, force=True)
