"""Pytest configuration for the relay test suite.

Isolates every test from the developer's environment: relay and OpenAI
variables are cleared and ``.env`` loading points at a path that does not
exist, so configuration only comes from what a test sets explicitly.
"""
from __future__ import annotations

from typing import Callable, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from logprob_relay.config import RelayConfig
from logprob_relay.service.app import create_app

_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "LOGPROB_RELAY_MODELS",
    "LOGPROB_RELAY_CORS_ORIGINS",
    "LOGPROB_RELAY_USE_MOCKS",
    "LOGPROB_RELAY_CONFIG_FILE",
    "LOGPROB_RELAY_START_TIMEOUT_SECONDS",
    "LOGPROB_RELAY_STREAM_IDLE_TIMEOUT_SECONDS",
    "LOGPROB_RELAY_HTTP_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    yield


@pytest.fixture()
def relay_config() -> RelayConfig:
    """Configuration with a (fake) credential and short timeouts."""
    return RelayConfig(api_key="sk-live-123", start_timeout_seconds=5.0, stream_idle_timeout_seconds=5.0)


@pytest.fixture()
def make_client(relay_config: RelayConfig) -> Callable[..., TestClient]:
    """Return a factory building a ``TestClient`` over an isolated app."""

    def _factory(provider=None, config: Optional[RelayConfig] = None) -> TestClient:
        return TestClient(create_app(config=config or relay_config, provider=provider))

    return _factory
