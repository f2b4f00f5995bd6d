"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without
    # parsing str(exception). Never raise this directly, always pick a subclass so
    # callers (scanner, API handlers) can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    # Used for "scan this one entity" triggers when the id is unknown. Kept separate
    # fields so the 404 handler can log them structured.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationError(DomainException):
    """Input or entity validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("Tracked entity must belong to a user")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration (provider credentials, API keys) is
    missing. The scanner treats it as "provider unavailable" and skips.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class ExternalServiceError(DomainException):
    """External provider (Spotify, RAWG, Steam, ...) failed.

    HTTP Status: 502 (Bad Gateway)

    Example:
        raise ExternalServiceError("RAWG returned 500", service="rawg")
    """

    def __init__(self, message: str, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class RateLimitExceededError(ExternalServiceError):
    """External service rate limit was exceeded.

    Raised on HTTP 429 (or provider-specific throttling payloads) and while a
    client is still cooling down from a previous rate-limit signal.

    HTTP Status: 429
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, service=service)
        self.retry_after = retry_after


__all__ = [
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "RateLimitExceededError",
    "ValidationError",
]
