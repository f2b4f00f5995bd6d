"""Email sender port used by the notification dispatcher.

Hey future me - this is the PORT for outgoing email. The dispatcher only knows
IEmailSender; ResendEmailSender and LogOnlyEmailSender implement it.

Architecture:
- NotificationDispatcher (Application Layer) -> IEmailSender (Port)
- ResendEmailSender / LogOnlyEmailSender -> implement IEmailSender
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from releasewatch.domain.entities import Release


@dataclass
class EmailResult:
    """Result of sending one email.

    Hey future me - senders return this instead of raising! The dispatcher logs
    failures and moves on, inserted releases are never rolled back because an
    email bounced.
    """

    success: bool
    provider_name: str
    recipient: str
    error: str | None = None
    message_id: str | None = None  # ID from the email provider


class IEmailSender(ABC):
    """Interface for release notification email delivery."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this sender (e.g. 'resend', 'log')."""
        pass

    @abstractmethod
    async def send(
        self, recipient: str, releases: list[Release], digest: bool
    ) -> EmailResult:
        """Send one email about one release, or a digest of several.

        Args:
            recipient: Email address
            releases: Releases to announce (at least one)
            digest: True when the email lists several releases

        Returns:
            EmailResult indicating success/failure
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if this sender has the credentials it needs."""
        pass

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None


__all__ = ["EmailResult", "IEmailSender"]
