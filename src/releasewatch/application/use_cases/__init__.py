"""Application use cases - orchestration of scans and sweeps."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TRequest = TypeVar("TRequest")
TResponse = TypeVar("TResponse")


class UseCase(ABC, Generic[TRequest, TResponse]):
    """Base class for all use cases following command pattern."""

    @abstractmethod
    async def execute(self, request: TRequest) -> TResponse:
        """Execute the use case with the given request."""
        pass


# Import concrete use cases (after UseCase definition to avoid circular imports)
from releasewatch.application.use_cases.check_releases import (  # noqa: E402
    CheckReleasesRequest,
    CheckReleasesResponse,
    CheckReleasesUseCase,
)
from releasewatch.application.use_cases.sweep_expired_releases import (  # noqa: E402
    SweepExpiredReleasesRequest,
    SweepExpiredReleasesResponse,
    SweepExpiredReleasesUseCase,
)

__all__ = [
    "CheckReleasesRequest",
    "CheckReleasesResponse",
    "CheckReleasesUseCase",
    "SweepExpiredReleasesRequest",
    "SweepExpiredReleasesResponse",
    "SweepExpiredReleasesUseCase",
    "UseCase",
]
