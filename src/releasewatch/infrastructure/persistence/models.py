"""SQLAlchemy ORM models for ReleaseWatch."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Datetimes come back naive.
# ALWAYS run values read from the DB through this before comparing with
# datetime.now(UTC), or you get "can't compare offset-naive and offset-aware".
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models.

    All models inherit from this to use the same metadata registry.
    """

    pass


class TrackedEntityModel(Base):
    """An artist or game followed by one user.

    entity_type is 'artist' or 'game' (plain strings, no DB enum, SQLite friendly).
    Game status columns stay NULL for artists.
    """

    __tablename__ = "tracked_entities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    spotify_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deezer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    soundcloud_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    rawg_slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    release_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    last_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_tracked_entities_user_id", "user_id"),
        Index("ix_tracked_entities_type", "entity_type"),
    )


# Hey future me - the unique constraint IS the dedup guarantee! Two overlapping scan runs
# may both decide a release is new; the second INSERT hits this constraint and gets
# skipped by ON CONFLICT DO NOTHING. No application-level locking needed.
class ReleaseModel(Base):
    """A detected new release, visible to its user until expires_at."""

    __tablename__ = "releases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    # No FK: releases outlive a deleted tracked entity until they expire
    source_entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    platform_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    unique_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    detected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint(
            "source_entity_id",
            "user_id",
            "type",
            "unique_hash",
            name="uq_releases_entity_user_type_hash",
        ),
        Index("ix_releases_user_id", "user_id"),
        Index("ix_releases_expires_at", "expires_at"),
    )


# Hey future me - releases get deleted (user dismissal, expiry sweep) but their key stays
# here. Dedup checks THIS table, so a dismissed album still inside the lookback window
# is not detected (and emailed) again. last_seen_at is refreshed on every sighting;
# the sweeper prunes keys nobody has seen for scanner.seen_key_retention_days.
class ReleaseKeyModel(Base):
    """Dedup key of every release ever inserted, outliving the release row."""

    __tablename__ = "release_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    source_entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    unique_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    first_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "source_entity_id",
            "user_id",
            "type",
            "unique_hash",
            name="uq_release_keys_entity_user_type_hash",
        ),
        Index("ix_release_keys_last_seen_at", "last_seen_at"),
    )


class NotificationSettingsModel(Base):
    """Per-user notification preferences. One row per user."""

    __tablename__ = "notification_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    email_notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    notification_frequency: Mapped[str] = mapped_column(
        String(20), default="immediate", nullable=False
    )
    artist_notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    game_notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class UserAccountModel(Base):
    """Local mirror of the auth provider's user list (id -> email)."""

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


__all__ = [
    "Base",
    "NotificationSettingsModel",
    "ReleaseKeyModel",
    "ReleaseModel",
    "TrackedEntityModel",
    "UserAccountModel",
    "ensure_utc_aware",
    "utc_now",
]
