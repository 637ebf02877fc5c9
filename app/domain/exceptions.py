"""Domain exceptions for the observation portal.

Defines domain-level exceptions for business rule violations and for the
cache layer's failure taxonomy. Cache-layer exceptions (store unavailable,
serialization, configuration) are raised by adapters and always recovered
inside the cache services; the presentation layer maps the remaining ones
to HTTP responses in exception handlers.
"""

from typing import Any


class PortalException(Exception):
    """Base exception for all observation portal errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return JSON-serializable error body (error, message, details)."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class StoreUnavailableError(PortalException):
    """Raised by a KV or property store adapter when the backend call fails."""

    def __init__(self, store: str, operation: str, reason: str) -> None:
        """Initialize with store name, failed operation and reason.

        Args:
            store: Store kind (e.g. 'kv', 'property').
            operation: Operation that failed (e.g. 'get', 'put').
            reason: Underlying error text.
        """
        super().__init__(
            f"{store} store unavailable during {operation}",
            "STORE_UNAVAILABLE",
            {"store": store, "operation": operation, "reason": reason},
        )


class CacheSerializationError(PortalException):
    """Raised when a cached payload or digest input cannot be (de)serialized."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Cannot serialize cache payload for {key}",
            "CACHE_SERIALIZATION_ERROR",
            {"key": key, "reason": reason},
        )


class ConfigurationError(PortalException):
    """Raised when a configuration value is missing or unusable."""

    def __init__(self, setting: str, reason: str) -> None:
        super().__init__(
            f"Invalid configuration for {setting}: {reason}",
            "CONFIGURATION_ERROR",
            {"setting": setting},
        )


class ValidationException(PortalException):
    """Raised when input validation fails (e.g. invalid email format)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class UserNotFoundException(PortalException):
    """Raised when a user is not present in the staff roster."""

    def __init__(self, email: str) -> None:
        super().__init__(
            f"User not found: {email}",
            "USER_NOT_FOUND",
            {"email": email},
        )
