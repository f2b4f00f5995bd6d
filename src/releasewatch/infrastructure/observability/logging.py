"""Logging setup: one handler, JSON or compact text, every record tagged with its run id."""

import contextvars
import logging
import sys
import traceback
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, a scan or sweep run sets its own id before touching any provider.
# ContextVar is per asyncio task, so the scan worker and an API-triggered scan
# running side by side keep separate ids. grep one id -> the whole run.
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Libraries that log every request at INFO. A scan makes hundreds of calls.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "uvicorn.access")


def get_correlation_id() -> str:
    """Current run id, "" outside a run."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Start a new run id (a fresh UUID unless one is passed) and return it."""
    run_id = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(run_id)
    return run_id


class CorrelationIdFilter(logging.Filter):
    """Stamp run id and app name onto every record passing the handler."""

    def __init__(self, app_name: str = "releasewatch") -> None:
        super().__init__()
        self.app_name = app_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.app_name = self.app_name
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that prints exception chains as one line per exception.

    Only frames from our own package are kept, site-packages noise is dropped:

        12:00:03 │ ERROR   │ releasewatch...release_scanner:212 │ Scan failed for 'Hades II'
        ╰─► ConnectTimeout: timed out
        ╰─► ExternalServiceError: rawg request failed: timed out
            File "base_client.py", line 97, in _get_json
    """

    def formatException(self, ei: Any) -> str:
        exc_value = ei[1]
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in chain:
            chain.insert(0, current)
            current = current.__cause__ or current.__context__

        lines: list[str] = []
        for exc in chain:
            lines.append(f"╰─► {type(exc).__name__}: {exc}")
            lines.extend(self._own_frames(exc))
        return "\n".join(lines)

    @staticmethod
    def _own_frames(exc: BaseException) -> list[str]:
        if exc.__traceback__ is None:
            return []
        frames = []
        for frame in traceback.extract_tb(exc.__traceback__):
            if "site-packages" in frame.filename or "releasewatch" not in frame.filename:
                continue
            frames.append(
                f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
            )
        return frames


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """One JSON object per record for log shippers."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}:{record.lineno}"
        log_record["app"] = getattr(record, "app_name", "releasewatch")

        run_id = getattr(record, "correlation_id", "")
        if run_id:
            log_record["correlation_id"] = run_id


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return CompactExceptionFormatter(
        fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "releasewatch",
) -> None:
    """Replace root handlers with a single stdout handler.

    Called from the app lifespan. Safe to call again (tests, reloads): old
    handlers are removed first.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines instead of the compact text format
        app_name: Stamped onto every record as "app"
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter(app_name))
    handler.setFormatter(_build_formatter(json_format))
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured for {app_name} (level={log_level.upper()}, json={json_format})"
    )


__all__ = [
    "CompactExceptionFormatter",
    "CorrelationIdFilter",
    "CustomJsonFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
]
