"""
Pytest configuration and shared fixtures.

Provides fake provider endpoints (httpx.MockTransport), dispatcher factories
and environment setup for the Provider Relay test suite.

IMPORTANT: Environment variables must be set BEFORE importing relay modules
that use pydantic-settings, as Settings is read on import of relay.main.
"""

import os

# Set test environment variables before importing relay modules
for _key in ("EDENAI_API_KEY", "GEMINI_API_KEY", "OPENROUTER_API_KEY", "GITHUB_API_TOKEN"):
    os.environ.pop(_key, None)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"

# Now safe to import everything else
import httpx
import pytest
from fastapi.testclient import TestClient

from relay.config import Settings, get_settings
from relay.dispatcher.clients import ProviderClients
from relay.dispatcher.fallback import FallbackDispatcher
from relay.registry.providers import ProviderCredentials, ProviderRegistry

from fixtures import EDENAI_KEY, GEMINI_KEY, GITHUB_TOKEN, OPENROUTER_KEY, FakeProviders


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset all singleton instances between tests.

    This ensures each test starts with a clean state.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

    from relay.registry import providers

    providers._registry_instance = None

    from relay.dispatcher import clients

    clients._clients = None


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_providers():
    return FakeProviders()


@pytest.fixture
def settings():
    """Settings with every credential present, independent of the environment."""
    return Settings(
        _env_file=None,
        edenai_api_key=EDENAI_KEY,
        gemini_api_key=GEMINI_KEY,
        openrouter_api_key=OPENROUTER_KEY,
        github_api_token=GITHUB_TOKEN,
    )


@pytest.fixture
def clients(settings, fake_providers):
    """ProviderClients whose traffic goes to FakeProviders."""
    return ProviderClients(settings=settings, transport=httpx.MockTransport(fake_providers))


@pytest.fixture
def make_dispatcher(settings, clients):
    """
    Factory fixture for FallbackDispatcher instances.

    Usage:
        dispatcher = make_dispatcher(edenai=None, gemini=GEMINI_KEY)
    """

    def _create(
        edenai: str | None = EDENAI_KEY,
        gemini: str | None = GEMINI_KEY,
        openrouter: str | None = OPENROUTER_KEY,
        timeout_ms: int = 2000,
        adapters=None,
    ) -> FallbackDispatcher:
        return FallbackDispatcher(
            credentials=ProviderCredentials(edenai=edenai, gemini=gemini, openrouter=openrouter),
            clients=clients,
            registry=ProviderRegistry(settings),
            timeout_ms=timeout_ms,
            adapters=adapters,
        )

    return _create


@pytest.fixture
def test_client(monkeypatch, fake_providers):
    """
    Create a FastAPI TestClient whose upstream traffic goes to FakeProviders.

    All credentials are set through the environment so the app's own
    settings, dispatcher and clients are exercised.
    """
    monkeypatch.setenv("EDENAI_API_KEY", EDENAI_KEY)
    monkeypatch.setenv("GEMINI_API_KEY", GEMINI_KEY)
    monkeypatch.setenv("OPENROUTER_API_KEY", OPENROUTER_KEY)
    monkeypatch.setenv("GITHUB_API_TOKEN", GITHUB_TOKEN)
    get_settings.cache_clear()

    from relay.dispatcher import clients as clients_module
    from relay.main import app

    clients_module._clients = ProviderClients(
        settings=get_settings(), transport=httpx.MockTransport(fake_providers)
    )

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def bare_client(monkeypatch):
    """TestClient with no credentials configured at all."""
    get_settings.cache_clear()

    from relay.main import app

    with TestClient(app) as client:
        yield client
