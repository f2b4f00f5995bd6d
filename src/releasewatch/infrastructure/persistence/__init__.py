"""Persistence layer: SQLAlchemy models, database sessions and repositories."""

from .database import Database
from .repositories import (
    NotificationSettingsRepository,
    ReleaseRepository,
    TrackedEntityRepository,
    UserAccountRepository,
)

__all__ = [
    "Database",
    "NotificationSettingsRepository",
    "ReleaseRepository",
    "TrackedEntityRepository",
    "UserAccountRepository",
]
