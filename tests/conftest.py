"""Shared test fixtures."""

from typing import Any, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bybit_proxy.core.config import Settings
from bybit_proxy.main import create_app

MAINNET_URL = "https://api.bybit.com"
DEMO_URL = "https://api-demo-testnet.bybit.com"
PROXY_TOKEN = "proxy-token-123"
FIXED_MILLIS = 1700000000000


def fixed_clock() -> int:
    return FIXED_MILLIS


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build settings that ignore the process environment and any .env file."""

    def factory(**overrides: Any) -> Settings:
        values = {
            "proxy_token": PROXY_TOKEN,
            "bybit_mainnet_api_key": "main-key",
            "bybit_mainnet_api_secret": "main-secret",
            "log_format": "text",
            "metrics_enabled": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def make_app(make_settings: Callable[..., Settings]) -> Callable[..., FastAPI]:
    """Create an app whose signer uses a fixed clock."""

    def factory(**overrides: Any) -> FastAPI:
        app = create_app(make_settings(**overrides))
        app.state.proxy_service.signer.clock = fixed_clock
        return app

    return factory


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> Iterator[TestClient]:
    with TestClient(make_app()) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"X-Proxy-Token": PROXY_TOKEN}
