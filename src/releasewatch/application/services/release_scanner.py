"""Release Scanner - detects new releases for tracked artists and games.

Hey future me - this is THE core of the service. One scan run goes through three phases:

1. FETCH (network only, no DB): ask every provider about every entity. Entities run
   concurrently up to scanner.max_concurrency; per-request pacing comes from each
   client's own token bucket, not from sleeps in here.
2. STAGE (sequential, one session): hash candidates, drop the ones whose key is in
   release_keys (dismissed and swept releases keep their key), update entity
   status/last-checked.
3. INSERT: one bulk INSERT ... ON CONFLICT DO NOTHING. Only rows that really went in
   are returned, and only those get notified.

Failure rules:
- Provider not configured       -> skipped for the run, logged once
- Provider rate limited         -> the entity that hit it fails, provider skipped for
                                   the rest of the run (it is cooling down anyway)
- Any provider error for entity -> that entity yields NOTHING this run and keeps its
                                   old state (no half-updated games!)
- Bulk insert fails             -> exception propagates, caller's transaction rolls back
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from releasewatch.config import ScannerSettings
from releasewatch.domain.dtos import GameStatusReport, ProviderItem
from releasewatch.domain.entities import EntityType, GameStatus, Release, TrackedEntity
from releasewatch.domain.exceptions import (
    DomainException,
    EntityNotFoundException,
    RateLimitExceededError,
)
from releasewatch.domain.ports import (
    IGameProvider,
    IMusicProvider,
    IReleaseRepository,
    ITrackedEntityRepository,
)
from releasewatch.domain.value_objects import compute_release_hash
from releasewatch.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

_KIND_LABELS = {
    "album": "album",
    "single": "single",
    "ep": "EP",
    "compile": "compilation",
    "compilation": "compilation",
    "track": "track",
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ScanFilter:
    """Which entities a run covers. Empty filter = global sweep."""

    user_id: str | None = None
    entity_id: str | None = None

    @property
    def scope(self) -> str:
        if self.entity_id:
            return f"entity {self.entity_id}"
        if self.user_id:
            return f"user {self.user_id}"
        return "all entities"


@dataclass
class ScanResult:
    """Outcome of one scan run."""

    entities_processed: int = 0
    entities_failed: int = 0
    inserted: list[Release] = field(default_factory=list)
    skipped_providers: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def releases_inserted(self) -> int:
        return len(self.inserted)


@dataclass
class EntityObservation:
    """Everything the providers told us about one entity in this run."""

    entity: TrackedEntity
    items: list[ProviderItem] = field(default_factory=list)
    status_reports: list[GameStatusReport] = field(default_factory=list)
    error: str | None = None


@dataclass
class _StagedCandidate:
    title: str
    description: str | None
    image_url: str | None
    platform_url: str | None


class ReleaseScanner:
    """Diff provider data against stored releases and insert what's new."""

    def __init__(
        self,
        entity_repository: ITrackedEntityRepository,
        release_repository: IReleaseRepository,
        music_providers: list[IMusicProvider],
        game_providers: list[IGameProvider],
        settings: ScannerSettings,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.entity_repository = entity_repository
        self.release_repository = release_repository
        self.music_providers = music_providers
        self.game_providers = game_providers
        self.settings = settings
        self.clock = clock

    async def scan(self, scan_filter: ScanFilter | None = None) -> ScanResult:
        """Run one scan.

        Raises:
            EntityNotFoundException: If a single-entity scan names an unknown entity
        """
        scan_filter = scan_filter or ScanFilter()
        started = time.monotonic()
        now = self.clock()
        result = ScanResult()

        entities = await self._load_entities(scan_filter)
        disabled = self._unconfigured_providers()
        for provider_name, reason in disabled.items():
            logger.info(LogMessages.provider_skipped(provider=provider_name, reason=reason))

        # Phase 1: fetch
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        async def observe(entity: TrackedEntity) -> EntityObservation:
            async with semaphore:
                return await self._observe(entity, now, disabled)

        observations = await asyncio.gather(*(observe(e) for e in entities))

        # Phase 2: stage
        staged: list[Release] = []
        for observation in observations:
            entity = observation.entity
            if observation.error is not None:
                result.entities_failed += 1
                result.errors[entity.id] = observation.error
                continue

            staged.extend(await self._stage(observation, now))
            entity.mark_checked(now)
            await self.entity_repository.update(entity)
            result.entities_processed += 1

        # Phase 3: insert
        result.inserted = await self.release_repository.insert_many(staged)
        result.skipped_providers = dict(disabled)

        logger.info(
            LogMessages.scan_completed(
                scope=scan_filter.scope,
                processed=result.entities_processed,
                failed=result.entities_failed,
                inserted=result.releases_inserted,
                duration=time.monotonic() - started,
            )
        )
        return result

    async def _load_entities(self, scan_filter: ScanFilter) -> list[TrackedEntity]:
        if scan_filter.entity_id:
            entity = await self.entity_repository.get_by_id(scan_filter.entity_id)
            if entity is None:
                raise EntityNotFoundException("TrackedEntity", scan_filter.entity_id)
            return [entity]
        if scan_filter.user_id:
            return await self.entity_repository.list_by_user(scan_filter.user_id)
        return await self.entity_repository.list_all()

    def _unconfigured_providers(self) -> dict[str, str]:
        disabled: dict[str, str] = {}
        for provider in [*self.music_providers, *self.game_providers]:
            if not provider.is_configured():
                disabled[provider.name] = "credentials not configured"
        return disabled

    # =========================================================================
    # FETCH PHASE
    # =========================================================================

    async def _observe(
        self, entity: TrackedEntity, now: datetime, disabled: dict[str, str]
    ) -> EntityObservation:
        observation = EntityObservation(entity=entity)
        current_provider = "unknown"
        try:
            if entity.is_game:
                for provider in self.game_providers:
                    if provider.name in disabled:
                        continue
                    current_provider = provider.name
                    await self._observe_game(observation, provider, now)
            else:
                since = now - timedelta(days=self.settings.artist_lookback_days)
                for music_provider in self.music_providers:
                    if music_provider.name in disabled:
                        continue
                    provider_id = music_provider.provider_id_for(entity)
                    if not provider_id:
                        continue
                    current_provider = music_provider.name
                    observation.items.extend(
                        await music_provider.get_recent_releases(provider_id, since)
                    )
        except RateLimitExceededError as e:
            provider_name = e.service or current_provider
            retry = f", retry in {e.retry_after:.0f}s" if e.retry_after else ""
            if provider_name not in disabled:
                disabled[provider_name] = f"rate limited{retry}"
                logger.warning(
                    LogMessages.provider_skipped(
                        provider=provider_name, reason=disabled[provider_name]
                    )
                )
            observation.error = f"{provider_name}: {e.message}"
        except DomainException as e:
            logger.warning(
                LogMessages.entity_scan_failed(
                    entity=entity.name, provider=current_provider, error=e.message
                )
            )
            observation.error = f"{current_provider}: {e.message}"
        except Exception as e:
            # Unexpected payload shapes must not take the other entities down
            logger.exception(f"Unexpected error scanning '{entity.name}' via {current_provider}")
            observation.error = f"{current_provider}: {e}"
        return observation

    async def _observe_game(
        self, observation: EntityObservation, provider: IGameProvider, now: datetime
    ) -> None:
        entity = observation.entity
        report = await provider.get_game_status(entity)
        if report is not None:
            observation.status_reports.append(report)

        patch_since = now - timedelta(days=self.settings.patch_notes_lookback_days)
        observation.items.extend(await provider.get_recent_patch_notes(entity, patch_since))

        dlc_since = now - timedelta(days=self.settings.dlc_lookback_days)
        observation.items.extend(await provider.get_recent_dlc(entity, dlc_since))

    # =========================================================================
    # STAGE PHASE
    # =========================================================================

    async def _stage(self, observation: EntityObservation, now: datetime) -> list[Release]:
        entity = observation.entity
        if entity.is_game:
            candidates = self._game_candidates(observation)
            release_type = EntityType.GAME
            # Game keys only suppress recent sightings
            seen_since: datetime | None = now - timedelta(
                days=self.settings.game_dedup_window_days
            )
        else:
            candidates = self._artist_candidates(observation, now)
            release_type = EntityType.ARTIST
            seen_since = None

        if not candidates:
            return []

        known = await self.release_repository.existing_hashes(
            entity.id, entity.user_id, release_type, seen_since=seen_since
        )

        expires_at = now + timedelta(days=self.settings.release_ttl_days)
        releases: list[Release] = []
        seen_again: set[str] = set()
        staged: set[str] = set()
        for candidate in candidates:
            unique_hash = compute_release_hash(entity.id, release_type, candidate.title)
            if unique_hash in known:
                seen_again.add(unique_hash)
                continue
            if unique_hash in staged:
                continue
            staged.add(unique_hash)
            releases.append(
                Release(
                    id=str(uuid.uuid4()),
                    type=release_type,
                    source_entity_id=entity.id,
                    user_id=entity.user_id,
                    title=candidate.title,
                    unique_hash=unique_hash,
                    detected_at=now,
                    expires_at=expires_at,
                    description=candidate.description,
                    image_url=candidate.image_url,
                    platform_url=candidate.platform_url,
                )
            )

        # Keeps keys of items still inside a lookback window from being pruned
        await self.release_repository.mark_seen(
            entity.id, entity.user_id, release_type, seen_again, now
        )
        if seen_since is not None:
            # Stale keys of staged hashes would block the insert
            await self.release_repository.forget_keys(
                entity.id, entity.user_id, release_type, staged
            )
        if releases:
            logger.info(f"Staged {len(releases)} new release(s) for '{entity.name}'")
        return releases

    def _artist_candidates(
        self, observation: EntityObservation, now: datetime
    ) -> list[_StagedCandidate]:
        entity = observation.entity
        since = now - timedelta(days=self.settings.artist_lookback_days)
        candidates = []
        for item in observation.items:
            if item.released_at is None or item.released_at < since:
                continue
            if not item.title.strip():
                continue
            kind = _KIND_LABELS.get(item.kind.lower(), item.kind)
            candidates.append(
                _StagedCandidate(
                    title=f"{entity.name} - {item.title}",
                    description=(
                        f"New {kind} on {item.provider.capitalize()}, "
                        f"released {item.released_at.date().isoformat()}"
                    ),
                    image_url=item.artwork_url or entity.image_url,
                    platform_url=item.url or entity.url,
                )
            )
        return candidates

    def _game_candidates(self, observation: EntityObservation) -> list[_StagedCandidate]:
        entity = observation.entity
        candidates = []

        report = merge_status_reports(observation.status_reports)
        if report is not None and entity.apply_status(report.status, report.release_date):
            description = f"{entity.name} is {report.status.label}"
            if report.release_date:
                description += f" (release date: {report.release_date})"
            candidates.append(
                _StagedCandidate(
                    title=f"{entity.name} is {report.status.label}",
                    description=description,
                    image_url=report.image_url or entity.image_url,
                    platform_url=entity.url or report.url,
                )
            )

        for item in observation.items:
            if not item.title.strip():
                continue
            label = "DLC" if item.kind == "dlc" else "Update"
            candidates.append(
                _StagedCandidate(
                    title=f"{entity.name} - {label}: {item.title}",
                    description=item.description,
                    image_url=item.artwork_url or entity.image_url,
                    platform_url=item.url or entity.url,
                )
            )
        return candidates


def merge_status_reports(reports: list[GameStatusReport]) -> GameStatusReport | None:
    """Pick the winning status report.

    UNKNOWN reports never win. Highest confidence wins; on a tie the report
    from the provider asked later wins.
    """
    best: GameStatusReport | None = None
    for report in reports:
        if report.status == GameStatus.UNKNOWN:
            continue
        if best is None or report.confidence >= best.confidence:
            best = report
    return best


__all__ = [
    "EntityObservation",
    "ReleaseScanner",
    "ScanFilter",
    "ScanResult",
    "merge_status_reports",
]
