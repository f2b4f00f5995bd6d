"""Notification Dispatcher - one email per user per scan run.

Hey future me - input is ONLY the releases that were actually inserted this run
(never re-send on a rerun!). Per user:

1. Load settings (creating defaults on first use)
2. Skip unless email is enabled AND frequency is "immediate"
3. Drop releases whose type the user muted (artist/game flags)
4. Resolve the email address; no address -> log + skip the user
5. Send ONE email: single template for one release, digest for several

Email failures are logged and counted, never raised. The releases are already
committed and stay visible in the app either way.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from releasewatch.application.services.notification_settings_service import (
    NotificationSettingsService,
)
from releasewatch.domain.entities import Release
from releasewatch.domain.ports import IEmailSender, IUserDirectory
from releasewatch.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    users_notified: int = 0
    users_skipped: int = 0
    emails_failed: int = 0


class NotificationDispatcher:
    """Groups inserted releases by user and emails each user at most once."""

    def __init__(
        self,
        settings_service: NotificationSettingsService,
        user_directory: IUserDirectory,
        email_sender: IEmailSender,
    ) -> None:
        self.settings_service = settings_service
        self.user_directory = user_directory
        self.email_sender = email_sender

    async def dispatch(self, releases: list[Release]) -> DispatchResult:
        result = DispatchResult()
        if not releases:
            return result

        by_user: dict[str, list[Release]] = defaultdict(list)
        for release in releases:
            by_user[release.user_id].append(release)

        for user_id, user_releases in by_user.items():
            try:
                outcome = await self._dispatch_user(user_id, user_releases)
            except Exception as e:
                # One user's broken settings row must not cost the others their email
                logger.exception(f"Notification dispatch failed for user {user_id}: {e}")
                outcome = None
            if outcome is None:
                result.users_skipped += 1
            elif outcome:
                result.users_notified += 1
            else:
                result.emails_failed += 1

        logger.info(
            LogMessages.dispatch_completed(
                notified=result.users_notified,
                skipped=result.users_skipped,
                failed=result.emails_failed,
            )
        )
        return result

    async def _dispatch_user(self, user_id: str, releases: list[Release]) -> bool | None:
        """Returns None when skipped, else whether the email went out."""
        settings = await self.settings_service.get_settings(user_id)
        if not settings.wants_immediate_email:
            logger.debug(
                f"User {user_id} skipped: email={settings.email_notifications_enabled}, "
                f"frequency={settings.notification_frequency.value}"
            )
            return None

        wanted = [r for r in releases if settings.allows(r.type)]
        if not wanted:
            logger.debug(f"User {user_id} muted all {len(releases)} release type(s)")
            return None

        try:
            account = await self.user_directory.get_by_id(user_id)
        except Exception:
            logger.exception(f"Could not resolve email for user {user_id}")
            return None
        if account is None or not account.email:
            logger.warning(f"No email address for user {user_id}, notification skipped")
            return None

        digest = len(wanted) > 1
        try:
            email_result = await self.email_sender.send(account.email, wanted, digest=digest)
        except Exception:
            logger.exception(f"Email sender {self.email_sender.name} crashed for {user_id}")
            return False
        if not email_result.success:
            logger.error(
                LogMessages.email_failed(
                    recipient=account.email,
                    provider=email_result.provider_name,
                    error=email_result.error,
                )
            )
            return False
        return True


__all__ = ["DispatchResult", "NotificationDispatcher"]
