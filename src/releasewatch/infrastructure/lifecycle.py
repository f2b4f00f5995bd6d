"""Application lifecycle management for startup and shutdown tasks.

Startup order:
1. Logging
2. Database (+ tables in dev)
3. Provider clients, email sender, use cases -> app.state
4. Workers (if enabled)

Shutdown runs in reverse and never aborts halfway: a failing worker stop must not
keep the HTTP clients or the DB engine open.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from releasewatch.application.use_cases import (
    CheckReleasesUseCase,
    SweepExpiredReleasesUseCase,
)
from releasewatch.application.workers import (
    ExpirySweepWorker,
    PeriodicWorker,
    ReleaseScanWorker,
)
from releasewatch.config import Settings, get_settings
from releasewatch.infrastructure.integrations import (
    build_game_providers,
    build_music_providers,
)
from releasewatch.infrastructure.notifications import build_email_sender
from releasewatch.infrastructure.observability import configure_logging
from releasewatch.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


def _build_workers(settings: Settings, app: FastAPI) -> list[PeriodicWorker]:
    workers: list[PeriodicWorker] = []
    if settings.workers.scan_enabled:
        workers.append(
            ReleaseScanWorker(
                app.state.check_releases,
                interval_seconds=settings.workers.scan_interval_minutes * 60,
            )
        )
    else:
        logger.info("Release scan worker disabled")
    if settings.workers.sweep_enabled:
        workers.append(
            ExpirySweepWorker(
                app.state.sweep_expired,
                interval_seconds=settings.workers.sweep_interval_minutes * 60,
            )
        )
    else:
        logger.info("Expiry sweep worker disabled")
    return workers


# Listen future me, everything before `yield` runs at STARTUP, everything after at
# SHUTDOWN. The try/finally makes cleanup run even if startup crashes halfway.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    configure_logging(
        log_level=settings.logging.level,
        json_format=settings.logging.json_format,
        app_name=settings.app_name,
    )
    logger.info(f"Starting application: {settings.app_name}")

    db: Database | None = None
    providers: list = []
    email_sender = None
    workers: list[PeriodicWorker] = []
    try:
        db = Database(settings)
        app.state.db = db
        if settings.database.auto_create_tables:
            await db.create_tables()
        logger.info(f"Database initialized ({db.dialect_name})")

        music_providers = build_music_providers(settings)
        game_providers = build_game_providers(settings)
        providers = [*music_providers, *game_providers]
        for provider in providers:
            if not provider.is_configured():
                logger.warning(
                    "Provider %s not configured, it will be skipped during scans",
                    provider.name,
                )

        email_sender = build_email_sender(settings.email)

        app.state.check_releases = CheckReleasesUseCase(
            db=db,
            music_providers=music_providers,
            game_providers=game_providers,
            email_sender=email_sender,
            settings=settings.scanner,
        )
        app.state.sweep_expired = SweepExpiredReleasesUseCase(
            db, key_retention_days=settings.scanner.seen_key_retention_days
        )

        workers = _build_workers(settings, app)
        app.state.workers = workers
        for worker in workers:
            await worker.start()

        yield
    finally:
        logger.info("Shutting down application")

        for worker in reversed(workers):
            try:
                await worker.stop()
            except Exception as e:
                logger.exception(f"Error stopping {worker.worker_name}: {e}")

        for provider in providers:
            try:
                await provider.close()
            except Exception as e:
                logger.exception(f"Error closing {provider.name} client: {e}")

        if email_sender is not None:
            try:
                await email_sender.close()
            except Exception as e:
                logger.exception(f"Error closing email sender: {e}")

        if db is not None:
            await db.close()
            logger.info("Database connection closed")


__all__ = ["lifespan"]
