"""Repository implementations for data access."""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from releasewatch.domain.entities import (
    EntityType,
    GameStatus,
    NotificationFrequency,
    NotificationSettings,
    Release,
    TrackedEntity,
    UserAccount,
)
from releasewatch.domain.ports import (
    INotificationSettingsRepository,
    IReleaseRepository,
    ITrackedEntityRepository,
    IUserDirectory,
)

from .models import (
    NotificationSettingsModel,
    ReleaseKeyModel,
    ReleaseModel,
    TrackedEntityModel,
    UserAccountModel,
    ensure_utc_aware,
)

logger = logging.getLogger(__name__)


# Hey future me - ON CONFLICT is dialect specific. SQLite and PostgreSQL both support
# it through their own insert() constructs; anything else gets None and the caller
# falls back to row-by-row savepoints.
def _dialect_insert(session: AsyncSession, model: Any) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert(model)
    if dialect == "postgresql":
        return postgresql.insert(model)
    return None


def _aware(dt: datetime | None) -> datetime | None:
    return ensure_utc_aware(dt) if dt is not None else None


class TrackedEntityRepository(ITrackedEntityRepository):
    """SQLAlchemy implementation of the tracked entity repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _to_entity(model: TrackedEntityModel) -> TrackedEntity:
        return TrackedEntity(
            id=model.id,
            user_id=model.user_id,
            entity_type=EntityType(model.entity_type),
            name=model.name,
            platform=model.platform,
            url=model.url,
            image_url=model.image_url,
            spotify_id=model.spotify_id,
            deezer_id=model.deezer_id,
            soundcloud_url=model.soundcloud_url,
            rawg_slug=model.rawg_slug,
            status=GameStatus(model.status) if model.status else GameStatus.UNKNOWN,
            release_date=model.release_date,
            last_checked_at=_aware(model.last_checked_at),
            created_at=ensure_utc_aware(model.created_at),
        )

    async def add(self, entity: TrackedEntity) -> None:
        """Add a new tracked entity."""
        model = TrackedEntityModel(
            id=entity.id,
            user_id=entity.user_id,
            entity_type=entity.entity_type.value,
            name=entity.name,
            platform=entity.platform,
            url=entity.url,
            image_url=entity.image_url,
            spotify_id=entity.spotify_id,
            deezer_id=entity.deezer_id,
            soundcloud_url=entity.soundcloud_url,
            rawg_slug=entity.rawg_slug,
            status=entity.status.value if entity.is_game else None,
            release_date=entity.release_date,
            last_checked_at=entity.last_checked_at,
            created_at=entity.created_at,
        )
        self.session.add(model)
        await self.session.flush()

    async def get_by_id(self, entity_id: str) -> TrackedEntity | None:
        """Get a tracked entity by ID."""
        model = await self.session.get(TrackedEntityModel, entity_id)
        return self._to_entity(model) if model else None

    async def list_all(self) -> list[TrackedEntity]:
        """List every tracked entity, oldest first."""
        stmt = select(TrackedEntityModel).order_by(
            TrackedEntityModel.created_at, TrackedEntityModel.id
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_by_user(self, user_id: str) -> list[TrackedEntity]:
        """List one user's tracked entities."""
        stmt = (
            select(TrackedEntityModel)
            .where(TrackedEntityModel.user_id == user_id)
            .order_by(TrackedEntityModel.created_at, TrackedEntityModel.id)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def update(self, entity: TrackedEntity) -> None:
        """Persist scanner-owned fields."""
        model = await self.session.get(TrackedEntityModel, entity.id)
        if model is None:
            # Deleted by the user while the scan was running. Nothing to update.
            logger.debug(f"Tracked entity {entity.id} vanished before update")
            return
        model.last_checked_at = entity.last_checked_at
        if entity.is_game:
            model.status = entity.status.value
            model.release_date = entity.release_date

    async def delete(self, entity_id: str) -> None:
        """Delete a tracked entity. Releases are left alone."""
        await self.session.execute(
            delete(TrackedEntityModel).where(TrackedEntityModel.id == entity_id)
        )


class ReleaseRepository(IReleaseRepository):
    """SQLAlchemy implementation of the release repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _to_entity(model: ReleaseModel) -> Release:
        return Release(
            id=model.id,
            type=EntityType(model.type),
            source_entity_id=model.source_entity_id,
            user_id=model.user_id,
            title=model.title,
            unique_hash=model.unique_hash,
            detected_at=ensure_utc_aware(model.detected_at),
            expires_at=ensure_utc_aware(model.expires_at),
            description=model.description,
            image_url=model.image_url,
            platform_url=model.platform_url,
        )

    @staticmethod
    def _to_row(release: Release) -> dict[str, Any]:
        return {
            "id": release.id,
            "type": release.type.value,
            "source_entity_id": release.source_entity_id,
            "user_id": release.user_id,
            "title": release.title,
            "description": release.description,
            "image_url": release.image_url,
            "platform_url": release.platform_url,
            "unique_hash": release.unique_hash,
            "detected_at": release.detected_at,
            "expires_at": release.expires_at,
        }

    @staticmethod
    def _key_row(release: Release) -> dict[str, Any]:
        return {
            "id": str(uuid.uuid4()),
            "type": release.type.value,
            "source_entity_id": release.source_entity_id,
            "user_id": release.user_id,
            "unique_hash": release.unique_hash,
            "first_seen_at": release.detected_at,
            "last_seen_at": release.detected_at,
        }

    @staticmethod
    def _key_of(release: Release) -> tuple[str, str, str, str]:
        return (
            release.source_entity_id,
            release.user_id,
            release.type.value,
            release.unique_hash,
        )

    async def existing_hashes(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        seen_since: datetime | None = None,
    ) -> set[str]:
        """Hashes ever inserted for (entity, user, type), dismissed or swept ones included."""
        stmt = select(ReleaseKeyModel.unique_hash).where(
            ReleaseKeyModel.source_entity_id == source_entity_id,
            ReleaseKeyModel.user_id == user_id,
            ReleaseKeyModel.type == release_type.value,
        )
        if seen_since is not None:
            stmt = stmt.where(ReleaseKeyModel.last_seen_at >= seen_since)
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def mark_seen(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        hashes: set[str],
        now: datetime,
    ) -> None:
        """Refresh last_seen_at of keys a provider reported again."""
        if not hashes:
            return
        stmt = (
            update(ReleaseKeyModel)
            .where(
                ReleaseKeyModel.source_entity_id == source_entity_id,
                ReleaseKeyModel.user_id == user_id,
                ReleaseKeyModel.type == release_type.value,
                ReleaseKeyModel.unique_hash.in_(hashes),
            )
            .values(last_seen_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def forget_keys(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        hashes: set[str],
    ) -> None:
        """Drop keys so their hashes can be claimed again."""
        if not hashes:
            return
        stmt = (
            delete(ReleaseKeyModel)
            .where(
                ReleaseKeyModel.source_entity_id == source_entity_id,
                ReleaseKeyModel.user_id == user_id,
                ReleaseKeyModel.type == release_type.value,
                ReleaseKeyModel.unique_hash.in_(hashes),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def prune_keys(self, seen_before: datetime, user_id: str | None = None) -> int:
        """Forget keys no provider has reported since seen_before."""
        stmt = delete(ReleaseKeyModel).where(ReleaseKeyModel.last_seen_at < seen_before)
        if user_id is not None:
            stmt = stmt.where(ReleaseKeyModel.user_id == user_id)
        stmt = stmt.execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    # Hey future me - TWO statements for the whole batch, keys first! Claiming the key with
    # ON CONFLICT DO NOTHING ... RETURNING is the real dedup: a key that exists already
    # (release still stored, dismissed or swept) is not returned, so its release is
    # dropped. The release insert itself still skips conflicts for overlapping runs.
    async def insert_many(self, releases: list[Release]) -> list[Release]:
        """Insert releases whose key was never seen, skipping uniqueness conflicts."""
        if not releases:
            return []

        key_insert = _dialect_insert(self.session, ReleaseKeyModel)
        release_insert = _dialect_insert(self.session, ReleaseModel)
        if key_insert is None or release_insert is None:
            return await self._insert_one_by_one(releases)

        key_columns = ["source_entity_id", "user_id", "type", "unique_hash"]
        claim = (
            key_insert.values([self._key_row(r) for r in releases])
            .on_conflict_do_nothing(index_elements=key_columns)
            .returning(
                ReleaseKeyModel.source_entity_id,
                ReleaseKeyModel.user_id,
                ReleaseKeyModel.type,
                ReleaseKeyModel.unique_hash,
            )
        )
        claimed = {tuple(row) for row in (await self.session.execute(claim)).all()}
        fresh = [r for r in releases if self._key_of(r) in claimed]
        if not fresh:
            return []

        stmt = (
            release_insert.values([self._to_row(r) for r in fresh])
            .on_conflict_do_nothing(index_elements=key_columns)
            .returning(ReleaseModel.id)
        )
        result = await self.session.execute(stmt)
        inserted_ids = set(result.scalars().all())
        return [r for r in fresh if r.id in inserted_ids]

    async def _insert_one_by_one(self, releases: list[Release]) -> list[Release]:
        inserted: list[Release] = []
        for release in releases:
            try:
                async with self.session.begin_nested():
                    self.session.add(ReleaseKeyModel(**self._key_row(release)))
                    self.session.add(ReleaseModel(**self._to_row(release)))
            except IntegrityError:
                logger.debug(f"Release {release.unique_hash[:12]} already stored, skipped")
                continue
            inserted.append(release)
        return inserted

    async def delete_expired(self, now: datetime, user_id: str | None = None) -> int:
        """Delete releases with expires_at strictly before now."""
        stmt = delete(ReleaseModel).where(ReleaseModel.expires_at < now)
        if user_id is not None:
            stmt = stmt.where(ReleaseModel.user_id == user_id)
        # Bulk delete, no ORM objects to keep in sync
        stmt = stmt.execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def list_by_user(self, user_id: str) -> list[Release]:
        """List a user's releases, newest first."""
        stmt = (
            select(ReleaseModel)
            .where(ReleaseModel.user_id == user_id)
            .order_by(ReleaseModel.detected_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def delete_for_user(self, release_id: str, user_id: str) -> bool:
        """Dismiss one release on behalf of its owner."""
        stmt = delete(ReleaseModel).where(
            ReleaseModel.id == release_id, ReleaseModel.user_id == user_id
        ).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def count(self, user_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(ReleaseModel)
        if user_id is not None:
            stmt = stmt.where(ReleaseModel.user_id == user_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())


class NotificationSettingsRepository(INotificationSettingsRepository):
    """SQLAlchemy implementation of the notification settings repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _to_entity(model: NotificationSettingsModel) -> NotificationSettings:
        return NotificationSettings(
            user_id=model.user_id,
            email_notifications_enabled=model.email_notifications_enabled,
            notification_frequency=NotificationFrequency(model.notification_frequency),
            artist_notifications_enabled=model.artist_notifications_enabled,
            game_notifications_enabled=model.game_notifications_enabled,
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )

    async def get(self, user_id: str) -> NotificationSettings | None:
        stmt = select(NotificationSettingsModel).where(
            NotificationSettingsModel.user_id == user_id
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def ensure_defaults(self, user_id: str) -> NotificationSettings:
        """Create default settings if missing, then return the stored row.

        Hey future me - this is an UPSERT, not read-then-insert. Two dispatchers racing
        on a brand-new user both end up with the same single row.
        """
        defaults = NotificationSettings(user_id=user_id)
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "email_notifications_enabled": defaults.email_notifications_enabled,
            "notification_frequency": defaults.notification_frequency.value,
            "artist_notifications_enabled": defaults.artist_notifications_enabled,
            "game_notifications_enabled": defaults.game_notifications_enabled,
            "created_at": defaults.created_at,
            "updated_at": defaults.updated_at,
        }

        insert_stmt = _dialect_insert(self.session, NotificationSettingsModel)
        if insert_stmt is not None:
            await self.session.execute(
                insert_stmt.values(**row).on_conflict_do_nothing(
                    index_elements=["user_id"]
                )
            )
        elif await self.get(user_id) is None:
            try:
                async with self.session.begin_nested():
                    self.session.add(NotificationSettingsModel(**row))
            except IntegrityError:
                logger.debug(f"Notification settings for {user_id} created concurrently")

        settings = await self.get(user_id)
        if settings is None:
            raise RuntimeError(f"Notification settings for {user_id} missing after upsert")
        return settings

    async def update(self, settings: NotificationSettings) -> None:
        stmt = select(NotificationSettingsModel).where(
            NotificationSettingsModel.user_id == settings.user_id
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            model = NotificationSettingsModel(user_id=settings.user_id)
            self.session.add(model)
        model.email_notifications_enabled = settings.email_notifications_enabled
        model.notification_frequency = settings.notification_frequency.value
        model.artist_notifications_enabled = settings.artist_notifications_enabled
        model.game_notifications_enabled = settings.game_notifications_enabled
        model.updated_at = datetime.now(UTC)
        await self.session.flush()


class UserAccountRepository(IUserDirectory):
    """User directory backed by the user_accounts table."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def get_by_id(self, user_id: str) -> UserAccount | None:
        model = await self.session.get(UserAccountModel, user_id)
        if model is None:
            return None
        return UserAccount(id=model.id, email=model.email, display_name=model.display_name)

    async def add(self, account: UserAccount) -> None:
        self.session.add(
            UserAccountModel(
                id=account.id, email=account.email, display_name=account.display_name
            )
        )
        await self.session.flush()


__all__ = [
    "NotificationSettingsRepository",
    "ReleaseRepository",
    "TrackedEntityRepository",
    "UserAccountRepository",
]
