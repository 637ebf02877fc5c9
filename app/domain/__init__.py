"""Domain layer: value objects and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.exceptions import (
    CacheSerializationError,
    ConfigurationError,
    PortalException,
    StoreUnavailableError,
    UserNotFoundException,
    ValidationException,
)
from app.domain.value_objects import (
    DependencyMap,
    ExactPattern,
    PrefixPattern,
    UserEmail,
)

__all__ = [
    # Exceptions
    "CacheSerializationError",
    "ConfigurationError",
    "PortalException",
    "StoreUnavailableError",
    "UserNotFoundException",
    "ValidationException",
    # Value objects
    "DependencyMap",
    "ExactPattern",
    "PrefixPattern",
    "UserEmail",
]
