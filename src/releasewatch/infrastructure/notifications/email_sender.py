"""Email senders for release notifications.

Hey future me - two implementations of IEmailSender:
- ResendEmailSender: POSTs to the Resend HTTP API (https://api.resend.com/emails)
- LogOnlyEmailSender: used when no Resend key is configured. Logs what WOULD be
  sent, so local dev and CI never need mail credentials.

Both return EmailResult instead of raising. Email problems must never abort a scan.
"""

import logging

import httpx

from releasewatch.config import EmailSettings
from releasewatch.domain.entities import Release
from releasewatch.domain.ports.notification import EmailResult, IEmailSender
from releasewatch.infrastructure.notifications.templates import render_release_email

logger = logging.getLogger(__name__)


class ResendEmailSender(IEmailSender):
    """Send release emails through Resend."""

    API_URL = "https://api.resend.com/emails"

    def __init__(self, settings: EmailSettings, timeout: float = 15.0) -> None:
        self.settings = settings
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "resend"

    def is_configured(self) -> bool:
        return bool(self.settings.resend_api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(
        self, recipient: str, releases: list[Release], digest: bool
    ) -> EmailResult:
        email = render_release_email(releases, digest, self.settings.app_base_url)
        client = await self._get_client()

        try:
            response = await client.post(
                self.API_URL,
                headers={
                    "Authorization": f"Bearer {self.settings.resend_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": f"{self.settings.from_name} <{self.settings.from_address}>",
                    "to": [recipient],
                    "subject": email.subject,
                    "html": email.html,
                    "text": email.text,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Resend email to {recipient} failed: {e}")
            return EmailResult(
                success=False, provider_name=self.name, recipient=recipient, error=str(e)
            )

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        logger.info(
            f"Release email sent to {recipient} "
            f"({len(releases)} release(s), digest={digest}, id={message_id})"
        )
        return EmailResult(
            success=True,
            provider_name=self.name,
            recipient=recipient,
            message_id=message_id,
        )


class LogOnlyEmailSender(IEmailSender):
    """Log emails instead of sending them."""

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings

    @property
    def name(self) -> str:
        return "log"

    def is_configured(self) -> bool:
        return True

    async def send(
        self, recipient: str, releases: list[Release], digest: bool
    ) -> EmailResult:
        email = render_release_email(releases, digest, self.settings.app_base_url)
        logger.info(f"[EMAIL] to={recipient} subject={email.subject!r}")
        return EmailResult(success=True, provider_name=self.name, recipient=recipient)


def build_email_sender(settings: EmailSettings) -> IEmailSender:
    """Resend when a key is configured, else log-only."""
    sender = ResendEmailSender(settings)
    if sender.is_configured():
        return sender
    logger.warning("Resend API key not configured, release emails will only be logged")
    return LogOnlyEmailSender(settings)


__all__ = ["LogOnlyEmailSender", "ResendEmailSender", "build_email_sender"]
