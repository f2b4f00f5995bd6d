"""Use case for one release-check run: scan, commit, then notify.

Hey future me - the ORDER is the whole point here:
1. Scan inside one transaction (entity updates + bulk insert commit together)
2. Commit
3. Only then dispatch emails, in a fresh session

If the insert blows up, nothing was committed and nobody gets an email. If an
email blows up, the releases are already safe in the DB.

Three trigger modes, same pipeline:
- global:  CheckReleasesRequest()
- user:    CheckReleasesRequest(user_id="...")
- entity:  CheckReleasesRequest(entity_id="...")   (404 if unknown)
"""

import logging
from dataclasses import dataclass, field

from releasewatch.application.services.notification_dispatcher import (
    NotificationDispatcher,
)
from releasewatch.application.services.notification_settings_service import (
    NotificationSettingsService,
)
from releasewatch.application.services.release_scanner import ReleaseScanner, ScanFilter
from releasewatch.application.use_cases import UseCase
from releasewatch.config import ScannerSettings
from releasewatch.domain.exceptions import ValidationError
from releasewatch.domain.ports import IEmailSender, IGameProvider, IMusicProvider
from releasewatch.infrastructure.observability.logging import set_correlation_id
from releasewatch.infrastructure.persistence.database import Database
from releasewatch.infrastructure.persistence.repositories import (
    NotificationSettingsRepository,
    ReleaseRepository,
    TrackedEntityRepository,
    UserAccountRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckReleasesRequest:
    """Provide at most ONE of user_id / entity_id. Neither = global run."""

    user_id: str | None = None
    entity_id: str | None = None

    def __post_init__(self) -> None:
        if self.user_id and self.entity_id:
            raise ValidationError("Scan either one user or one entity, not both")


@dataclass
class CheckReleasesResponse:
    """Aggregate counts of a run (no release contents)."""

    scope: str
    entities_processed: int
    entities_failed: int
    releases_inserted: int
    users_notified: int
    users_skipped: int
    emails_failed: int
    correlation_id: str
    skipped_providers: dict[str, str] = field(default_factory=dict)


class CheckReleasesUseCase(UseCase[CheckReleasesRequest, CheckReleasesResponse]):
    """Run the release scanner and notify users about what was inserted."""

    def __init__(
        self,
        db: Database,
        music_providers: list[IMusicProvider],
        game_providers: list[IGameProvider],
        email_sender: IEmailSender,
        settings: ScannerSettings,
    ) -> None:
        self.db = db
        self.music_providers = music_providers
        self.game_providers = game_providers
        self.email_sender = email_sender
        self.settings = settings

    async def execute(self, request: CheckReleasesRequest) -> CheckReleasesResponse:
        correlation_id = set_correlation_id()
        scan_filter = ScanFilter(user_id=request.user_id, entity_id=request.entity_id)
        logger.info(f"Release check started ({scan_filter.scope})")

        async with self.db.session_scope() as session:
            scanner = ReleaseScanner(
                entity_repository=TrackedEntityRepository(session),
                release_repository=ReleaseRepository(session),
                music_providers=self.music_providers,
                game_providers=self.game_providers,
                settings=self.settings,
            )
            scan_result = await scanner.scan(scan_filter)

        async with self.db.session_scope() as session:
            dispatcher = NotificationDispatcher(
                settings_service=NotificationSettingsService(
                    NotificationSettingsRepository(session)
                ),
                user_directory=UserAccountRepository(session),
                email_sender=self.email_sender,
            )
            dispatch_result = await dispatcher.dispatch(scan_result.inserted)

        return CheckReleasesResponse(
            scope=scan_filter.scope,
            entities_processed=scan_result.entities_processed,
            entities_failed=scan_result.entities_failed,
            releases_inserted=scan_result.releases_inserted,
            users_notified=dispatch_result.users_notified,
            users_skipped=dispatch_result.users_skipped,
            emails_failed=dispatch_result.emails_failed,
            correlation_id=correlation_id,
            skipped_providers=scan_result.skipped_providers,
        )


__all__ = ["CheckReleasesRequest", "CheckReleasesResponse", "CheckReleasesUseCase"]
