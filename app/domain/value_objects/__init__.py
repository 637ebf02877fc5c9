"""Domain value objects and shared value types."""

from app.domain.value_objects.cache import (
    DEFAULT_CACHE_DEPENDENCIES,
    DependencyMap,
    DependencyPattern,
    ExactPattern,
    PrefixPattern,
    parse_pattern,
)
from app.domain.value_objects.core import UserEmail, is_valid_email

__all__ = [
    "DEFAULT_CACHE_DEPENDENCIES",
    "DependencyMap",
    "DependencyPattern",
    "ExactPattern",
    "PrefixPattern",
    "parse_pattern",
    "UserEmail",
    "is_valid_email",
]
