"""
Global pytest fixtures for the Paste Gateway test suite.

Responsibilities:
    - Provide a gateway configuration with upload prefixes and a host override
    - Provide isolated in-memory object store and response cache
    - Provide a fresh FastAPI TestClient via the app factory, wired to those stores

Why an app factory?
    Using `create_app()` with injected stores gives every test fresh state and
    lets tests inspect origin reads, commits and cache writes directly.
"""

import random

import pytest
from fastapi.testclient import TestClient

from main import create_app
from paste_gateway.cache.cache import InMemoryCacheStore
from paste_gateway.config import GatewayConfig
from paste_gateway.manager.codec import IdentifierCodec
from paste_gateway.storage.storage import InMemoryObjectStore

TEST_CHARACTERS = "0123456789abcdefghijklmnopqrstuvwxyz"


@pytest.fixture
def config() -> GatewayConfig:
    """Base configuration used by most tests."""
    return GatewayConfig(
        characters=TEST_CHARACTERS,
        id_len=8,
        padding_len=64,
        secret=b"test-secret",
        project="1234",
        branch="main",
        token="t0k3n",
        upload_keys={"txt": "plain", "img": "plain", "b64": "base64", "s": "shortener"},
        waaai={"api": "https://short.example/api/links", "apikey": "sh0rt"},
        overrides={
            "other.example": {"project": "9999", "uploadKeys": {"p": "plain"}},
            "open.example": {"uploadAllowInsecure": True},
        },
    )


@pytest.fixture
def codec(config: GatewayConfig) -> IdentifierCodec:
    """Codec with a seeded RNG for reproducible identifiers."""
    return IdentifierCodec(config, rng=random.Random(1234))


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def app(config, object_store, cache_store):
    return create_app(config=config, object_store=object_store, cache_store=cache_store)


@pytest.fixture
def client(app) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Background tasks (cache population) finish before each call returns.
    """
    return TestClient(app)
