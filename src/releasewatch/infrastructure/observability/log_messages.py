"""Structured log message templates.

Hey future me - run summaries and failures are logged as small trees so they are
readable in docker logs at a glance:

    ✅ Release Scan Completed
    ├─ Scope: user 3f2a...
    ├─ Entities: 12 processed, 1 failed
    └─ Releases: 3 inserted

Usage:
    from releasewatch.infrastructure.observability.log_messages import LogMessages

    logger.info(LogMessages.provider_skipped(provider="rawg", reason="no API key"))
"""

from dataclasses import dataclass
from typing import Any


def _fill(template: str, kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return template
    try:
        return template.format(**kwargs)
    except (KeyError, IndexError, ValueError) as e:
        return f"<missing: {e}>"


@dataclass
class LogTemplate:
    """A log message: icon + title line, then one tree line per field, then a hint."""

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Render the template, filling {placeholders} from kwargs.

        Without kwargs values are used verbatim, so error texts containing
        braces (JSON bodies) pass through untouched.
        """
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"
            value = _fill(value_template, kwargs)
            lines.append(f"{prefix} {key}: {value}")

        if self.hint:
            lines.append(f"└─ 💡 {_fill(self.hint, kwargs)}")

        return "\n".join(lines)


class LogMessages:
    """Collection of standardized log messages for scans, sweeps and workers."""

    # === Worker Lifecycle ===

    @staticmethod
    def worker_started(
        worker: str, interval: int | None = None, config: dict[str, Any] | None = None
    ) -> str:
        fields: dict[str, str] = {}
        if interval:
            fields["Interval"] = f"{interval}s"
        for key, value in (config or {}).items():
            fields[key] = str(value)
        return LogTemplate(icon="✅", title=f"{worker} Started", fields=fields).format()

    @staticmethod
    def worker_failed(
        worker: str, error: str, will_retry: bool = True, hint: str | None = None
    ) -> str:
        status = "Will retry" if will_retry else "Stopped"
        return LogTemplate(
            icon="❌",
            title=f"{worker} Failed",
            fields={"Reason": error, "Status": status},
            hint=hint,
        ).format()

    # === Providers ===

    @staticmethod
    def provider_skipped(provider: str, reason: str) -> str:
        """A provider is left out of the current run (unconfigured or rate limited)."""
        return LogTemplate(
            icon="⚠️",
            title=f"{provider} Skipped",
            fields={"Reason": reason},
            hint=(
                "Set the credentials in the environment"
                if "credential" in reason or "not configured" in reason
                else None
            ),
        ).format()

    @staticmethod
    def entity_scan_failed(entity: str, provider: str, error: str) -> str:
        return LogTemplate(
            icon="🔴",
            title="Entity Scan Failed",
            fields={"Entity": entity, "Provider": provider, "Reason": error},
            hint="Entity keeps its previous state and is retried next run",
        ).format()

    # === Runs ===

    @staticmethod
    def scan_completed(
        scope: str, processed: int, failed: int, inserted: int, duration: float
    ) -> str:
        return LogTemplate(
            icon="✅",
            title="Release Scan Completed",
            fields={
                "Scope": scope,
                "Entities": f"{processed} processed, {failed} failed",
                "Releases": f"{inserted} inserted",
                "Duration": f"{duration:.1f}s",
            },
        ).format()

    @staticmethod
    def dispatch_completed(notified: int, skipped: int, failed: int) -> str:
        return LogTemplate(
            icon="📧",
            title="Notifications Dispatched",
            fields={
                "Users notified": str(notified),
                "Users skipped": str(skipped),
                "Emails failed": str(failed),
            },
        ).format()

    @staticmethod
    def email_failed(recipient: str, provider: str, error: str | None) -> str:
        return LogTemplate(
            icon="🔴",
            title="Email Delivery Failed",
            fields={
                "Recipient": recipient,
                "Provider": provider,
                "Reason": error or "unknown",
            },
            hint="Releases stay stored; check the email provider dashboard",
        ).format()

    @staticmethod
    def sweep_completed(
        deleted: int, remaining: int, scope: str, keys_pruned: int = 0
    ) -> str:
        return LogTemplate(
            icon="🧹",
            title="Expired Releases Swept",
            fields={
                "Scope": scope,
                "Deleted": str(deleted),
                "Remaining": str(remaining),
                "Keys Pruned": str(keys_pruned),
            },
        ).format()


__all__ = ["LogMessages", "LogTemplate"]
