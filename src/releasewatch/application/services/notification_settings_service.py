"""Notification settings access with lazy defaults."""

import logging

from releasewatch.domain.entities import NotificationFrequency, NotificationSettings
from releasewatch.domain.exceptions import ValidationError
from releasewatch.domain.ports import INotificationSettingsRepository

logger = logging.getLogger(__name__)


class NotificationSettingsService:
    """Reads and updates per-user notification settings.

    Hey future me - users never have to "create" settings. The first read goes through
    ensure_defaults(), an idempotent upsert, so a missing row silently becomes
    the defaults (email on, immediate, artists on, games on).
    """

    def __init__(self, repository: INotificationSettingsRepository) -> None:
        self.repository = repository

    async def get_settings(self, user_id: str) -> NotificationSettings:
        return await self.repository.ensure_defaults(user_id)

    async def update_settings(
        self,
        user_id: str,
        email_notifications_enabled: bool | None = None,
        notification_frequency: str | None = None,
        artist_notifications_enabled: bool | None = None,
        game_notifications_enabled: bool | None = None,
    ) -> NotificationSettings:
        """Partially update a user's settings. None means "leave as is"."""
        settings = await self.repository.ensure_defaults(user_id)

        if notification_frequency is not None:
            try:
                settings.notification_frequency = NotificationFrequency(
                    notification_frequency
                )
            except ValueError as e:
                raise ValidationError(
                    f"Invalid notification frequency: {notification_frequency}"
                ) from e
        if email_notifications_enabled is not None:
            settings.email_notifications_enabled = email_notifications_enabled
        if artist_notifications_enabled is not None:
            settings.artist_notifications_enabled = artist_notifications_enabled
        if game_notifications_enabled is not None:
            settings.game_notifications_enabled = game_notifications_enabled

        await self.repository.update(settings)
        logger.info(f"Notification settings updated for user {user_id}")
        return settings


__all__ = ["NotificationSettingsService"]
