"""
Pytest configuration and shared fixtures for device exchange tests.
"""

from collections.abc import Generator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from device_exchange.core.config import ExchangeSettings
from device_exchange.core.state import InMemoryDeviceCodeIssuer
from device_exchange.exchange import DeviceCodeExchange
from device_exchange.server import create_app

REGISTERED_CLIENTS = {
    "test-client": "test-secret",
    "other-client": "other-secret",
}


def authenticate_client(client_id, client_secret):
    if REGISTERED_CLIENTS.get(client_id) == client_secret:
        return {"client_id": client_id}
    return None


@pytest.fixture
def make_request():
    """Build a stand-in request exposing only `state`, as the exchange reads it."""

    def _make_request(body=None, **state):
        if body is not None:
            state["body"] = body
        return SimpleNamespace(state=SimpleNamespace(**state))

    return _make_request


@pytest.fixture
def exchange_settings() -> ExchangeSettings:
    return ExchangeSettings(api_prefix="/auth", scope_separators=[" ", ","])


@pytest.fixture
def issuer() -> InMemoryDeviceCodeIssuer:
    return InMemoryDeviceCodeIssuer()


@pytest.fixture
def test_client(issuer, exchange_settings) -> Generator[TestClient, None, None]:
    """Token endpoint backed by the in-memory issuer, with client authentication."""
    exchange = DeviceCodeExchange.from_config(issuer, exchange_settings.issuer_config())
    app = create_app(exchange, exchange_settings, authenticate_client=authenticate_client)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
