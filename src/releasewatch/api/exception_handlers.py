"""Custom exception handlers for the FastAPI application.

Domain exceptions become proper HTTP responses. Provider and internal details
never leak to clients, only a short message.
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from releasewatch.domain.exceptions import (
    ConfigurationError,
    DomainException,
    EntityNotFoundException,
    ExternalServiceError,
    RateLimitExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for the domain exception hierarchy.

    Starlette picks the handler of the most specific class in the exception's MRO,
    so RateLimitExceededError gets 429 even though it is an ExternalServiceError.
    """

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message}
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.warning("Validation error at %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message},
        )

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        logger.warning("Rate limited at %s: %s", request.url.path, exc.message)
        headers = {}
        if exc.retry_after is not None:
            headers["Retry-After"] = str(math.ceil(exc.retry_after))
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": "Provider rate limit exceeded, try again later"},
            headers=headers,
        )

    @app.exception_handler(ExternalServiceError)
    async def external_service_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        logger.error("External service error at %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "An external service failed"},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("Configuration error at %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service is not configured"},
        )

    # Hey future me - a manual scan racing the scan worker on SQLite can hit
    # "database is locked" past the busy timeout. Retryable, not a 500.
    @app.exception_handler(OperationalError)
    async def database_busy_handler(request: Request, exc: OperationalError) -> JSONResponse:
        logger.warning(f"Database unavailable at {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database is busy, try again shortly"},
            headers={"Retry-After": "5"},
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        logger.error("Unhandled domain error at %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal error"},
        )


__all__ = ["register_exception_handlers"]
