"""Tests for release email rendering and the Resend sender."""

import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from pytest_httpx import HTTPXMock

from releasewatch.config import EmailSettings
from releasewatch.domain.entities import EntityType, Release
from releasewatch.infrastructure.notifications import (
    LogOnlyEmailSender,
    ResendEmailSender,
    build_email_sender,
    render_release_email,
)

RESEND_URL = "https://api.resend.com/emails"
NOW = datetime(2026, 10, 1, tzinfo=UTC)


def _release(title: str, release_type: EntityType = EntityType.ARTIST, **extra) -> Release:
    return Release(
        id=title,
        type=release_type,
        source_entity_id="e1",
        user_id="u1",
        title=title,
        unique_hash=title,
        detected_at=NOW,
        expires_at=NOW + timedelta(days=7),
        **extra,
    )


class TestRenderReleaseEmail:
    def test_single_release_subject_uses_type_icon(self) -> None:
        email = render_release_email(
            [_release("Hades II is now available", EntityType.GAME)],
            digest=False,
            app_base_url="https://app.example",
        )
        assert email.subject == "🎮 Hades II is now available"
        assert "https://app.example" in email.html

    def test_digest_lists_every_release(self) -> None:
        releases = [_release("Artist - One"), _release("Artist - Two"), _release("Artist - Three")]

        email = render_release_email(releases, digest=True, app_base_url="https://app.example")

        assert email.subject == "🔔 3 new releases for you"
        for release in releases:
            assert release.title in email.html
            assert release.title in email.text

    def test_user_text_is_escaped(self) -> None:
        email = render_release_email(
            [_release("<script>alert(1)</script>", description="Tom & Jerry")],
            digest=False,
            app_base_url="https://app.example",
        )
        assert "<script>" not in email.html
        assert "&lt;script&gt;" in email.html
        assert "Tom &amp; Jerry" in email.html

    def test_empty_list_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            render_release_email([], digest=False, app_base_url="https://app.example")


class TestResendEmailSender:
    @pytest.fixture
    def sender(self) -> ResendEmailSender:
        return ResendEmailSender(
            EmailSettings(resend_api_key="re_test", from_address="bot@example.com")
        )

    async def test_send_posts_to_resend(
        self, sender: ResendEmailSender, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(method="POST", url=RESEND_URL, json={"id": "msg-1"})

        result = await sender.send("fan@example.com", [_release("Artist - Album")], digest=False)

        assert result.success is True
        assert result.message_id == "msg-1"
        request = httpx_mock.get_request()
        assert request.headers["Authorization"] == "Bearer re_test"
        payload = json.loads(request.content)
        assert payload["to"] == ["fan@example.com"]
        assert payload["subject"] == "🎵 Artist - Album"
        await sender.close()

    async def test_http_error_gives_failed_result(
        self, sender: ResendEmailSender, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(method="POST", url=RESEND_URL, status_code=422)

        result = await sender.send("fan@example.com", [_release("Artist - Album")], digest=False)

        assert result.success is False
        assert result.error
        await sender.close()

    async def test_transport_error_gives_failed_result(
        self, sender: ResendEmailSender, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.ConnectError("refused"))

        result = await sender.send("fan@example.com", [_release("Artist - Album")], digest=False)

        assert result.success is False
        await sender.close()


def test_build_email_sender_falls_back_to_logging() -> None:
    assert isinstance(build_email_sender(EmailSettings()), LogOnlyEmailSender)
    assert isinstance(
        build_email_sender(EmailSettings(resend_api_key="re_test")), ResendEmailSender
    )
