"""Application layer: interfaces, DTOs and services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (KV store, property store, data source).
"""

from app.application.interfaces import (
    IKeyValueStore,
    IPropertyStore,
    ITabularDataSource,
)
from app.application.services import (
    CacheInvalidationEngine,
    CacheVersioningService,
    ChangeHashDetector,
    StateChangeDetector,
    UserService,
    VersionedCache,
)

__all__ = [
    "CacheInvalidationEngine",
    "CacheVersioningService",
    "ChangeHashDetector",
    "IKeyValueStore",
    "IPropertyStore",
    "ITabularDataSource",
    "StateChangeDetector",
    "UserService",
    "VersionedCache",
]
