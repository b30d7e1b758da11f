"""
Test configuration and fixtures for the signed redirector.
This centralizes all test setup, making individual tests clean.
"""

import os

# Keep `import main` from creating a SQLite file in the working directory
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from main import create_app
from redirector_app.config import Settings
from redirector_app.security.bot_gate import BotGate
from redirector_app.security.token_codec import TokenCodec
from redirector_app.services.issuance_service import IssuanceService
from redirector_app.services.resolution_service import ResolutionService
from redirector_app.store.strategies import InMemoryRedirectStore

TEST_SECRET = "test-secret-key"

BROWSER_HEADERS = {
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/126.0 Safari/537.36"
    ),
    "accept": "text/html",
}


class SpyStore(InMemoryRedirectStore):
    """In-memory store that counts lookups"""

    def __init__(self):
        super().__init__()
        self.lookups = 0

    async def get_by_key(self, key):
        self.lookups += 1
        return await super().get_by_key(key)

    async def get_by_slug(self, slug):
        self.lookups += 1
        return await super().get_by_slug(slug)


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=TEST_SECRET,
        store_backend="memory",
        rate_limit_enabled=False,
        _env_file=None,
    )


@pytest.fixture
def store():
    return SpyStore()


@pytest.fixture
def codec():
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def gate():
    return BotGate(honeypot_param="hp_ref")


@pytest.fixture
def issuance_service(store, codec):
    return IssuanceService(store=store, codec=codec)


@pytest.fixture
def resolution_service(store, codec, gate):
    return ResolutionService(store=store, codec=codec, gate=gate)


@pytest.fixture
def client(settings):
    """
    Create a test client around a fresh app.
    This is the main fixture that API tests will use.
    """
    app = create_app(settings)
    with TestClient(app, headers=BROWSER_HEADERS) as test_client:
        yield test_client


@pytest.fixture
def make_client():
    """Build a client for an app with custom settings"""
    clients = []

    def _make(**overrides):
        values = {
            "jwt_secret": TEST_SECRET,
            "store_backend": "memory",
            "rate_limit_enabled": False,
        }
        values.update(overrides)
        app = create_app(Settings(_env_file=None, **values))
        test_client = TestClient(app, headers=BROWSER_HEADERS)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)
