"""Pytest configuration and fixtures for the observation portal.

Uses app.main:app for HTTP tests with in-memory stores and an in-memory
data source placed on app.state (ASGITransport does not run the lifespan).
All imports use app.*.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient

from app.application.services.cache_invalidation import CacheInvalidationEngine
from app.application.services.cache_versioning import CacheVersioningService
from app.application.services.change_hash import ChangeHashDetector
from app.application.services.session_service import UserSessionService
from app.application.services.state_change_detector import StateChangeDetector
from app.application.services.user_service import UserService
from app.application.services.versioned_cache import VersionedCache
from app.core.config import Settings, get_settings
from app.infrastructure.cache.memory import InMemoryKeyValueStore, InMemoryPropertyStore
from app.infrastructure.datasource.memory_source import InMemoryTableSource
from app.main import app

STAFF_HEADER = ["Name", "Email", "Role", "Year"]


def staff_rows() -> list[list[object]]:
    """Staff sheet used across tests (header first)."""
    return [
        STAFF_HEADER,
        ["Ada Lovelace", "a@x.com", "Teacher", 1],
        ["Grace Hopper", "Grace@X.com", "Administrator", "2"],
        ["Alan Turing", "alan@x.com", "Counselor", "P"],
        ["No Email", "", "Teacher", 1],
    ]


@pytest.fixture
def staff_sheet() -> list[list[object]]:
    return staff_rows()


@pytest.fixture
def settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def property_store() -> InMemoryPropertyStore:
    return InMemoryPropertyStore()


@pytest.fixture
def data_source() -> InMemoryTableSource:
    return InMemoryTableSource(
        {
            "Staff": staff_rows(),
            "Teacher": [["Component", "Look-fors"], ["1a", "Knowledge of content"]],
            "Administrator": [["Component", "Look-fors"], ["1a", "Leadership"]],
        }
    )


@pytest.fixture
def versioning(property_store, kv_store) -> CacheVersioningService:
    return CacheVersioningService(property_store, kv_store, cache_version="1.0.0")


@pytest.fixture
def hash_detector(property_store) -> ChangeHashDetector:
    return ChangeHashDetector(property_store)


@pytest.fixture
def state_detector(property_store) -> StateChangeDetector:
    return StateChangeDetector(property_store, history_limit=10)


@pytest.fixture
def sessions(property_store) -> UserSessionService:
    return UserSessionService(property_store, duration_seconds=3600)


@pytest.fixture
def invalidation(versioning, kv_store, hash_detector) -> CacheInvalidationEngine:
    return CacheInvalidationEngine(versioning, kv_store, hash_detector=hash_detector)


@pytest.fixture
def versioned_cache(versioning, kv_store) -> VersionedCache:
    return VersionedCache(versioning, kv_store, default_ttl=300, max_ttl=600)


@pytest.fixture
def user_service(
    data_source, versioned_cache, hash_detector, invalidation, state_detector, sessions, settings
) -> UserService:
    return UserService(
        data_source=data_source,
        cache=versioned_cache,
        hash_detector=hash_detector,
        invalidation=invalidation,
        state_detector=state_detector,
        sessions=sessions,
        settings=settings,
    )


@pytest.fixture
async def client(kv_store, property_store, data_source) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI) with fresh in-memory stores."""
    app.state.kv_store = kv_store
    app.state.property_store = property_store
    app.state.data_source = data_source
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
