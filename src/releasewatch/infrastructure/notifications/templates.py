"""Email subject/body rendering for release notifications.

Single release: subject is "<icon> <title>", body shows artwork, description and a
platform link. Digest: subject counts the releases, body lists them all.
All user-provided text is HTML-escaped.
"""

from dataclasses import dataclass
from html import escape

from releasewatch.domain.entities import EntityType, Release

TYPE_ICONS = {EntityType.ARTIST: "🎵", EntityType.GAME: "🎮"}


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


def _release_block(release: Release) -> str:
    parts = ['<div style="margin-bottom:24px;">']
    if release.image_url:
        parts.append(
            f'<img src="{escape(release.image_url)}" alt="" '
            'style="max-width:100%;border-radius:8px;" />'
        )
    parts.append(
        f"<h2>{TYPE_ICONS[release.type]} {escape(release.title)}</h2>"
    )
    if release.description:
        parts.append(f"<p>{escape(release.description)}</p>")
    if release.platform_url:
        parts.append(
            f'<p><a href="{escape(release.platform_url)}">Open on the platform</a></p>'
        )
    parts.append("</div>")
    return "".join(parts)


def _release_text(release: Release) -> str:
    lines = [f"{TYPE_ICONS[release.type]} {release.title}"]
    if release.description:
        lines.append(release.description)
    if release.platform_url:
        lines.append(release.platform_url)
    return "\n".join(lines)


def _wrap(title: str, body: str, app_base_url: str) -> str:
    return (
        "<!DOCTYPE html><html><body "
        'style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">'
        f"<h1>{escape(title)}</h1>{body}"
        '<hr /><p style="color:#888;font-size:12px;">'
        f'Manage your notifications at <a href="{escape(app_base_url)}">'
        f"{escape(app_base_url)}</a></p></body></html>"
    )


def render_release_email(
    releases: list[Release], digest: bool, app_base_url: str
) -> RenderedEmail:
    """Render a single-release email, or a digest when digest is True."""
    if not releases:
        raise ValueError("Cannot render an email without releases")

    if not digest:
        release = releases[0]
        subject = f"{TYPE_ICONS[release.type]} {release.title}"
        return RenderedEmail(
            subject=subject,
            html=_wrap("New release", _release_block(release), app_base_url),
            text=_release_text(release),
        )

    subject = f"🔔 {len(releases)} new releases for you"
    return RenderedEmail(
        subject=subject,
        html=_wrap(
            f"{len(releases)} new releases",
            "".join(_release_block(r) for r in releases),
            app_base_url,
        ),
        text="\n\n".join(_release_text(r) for r in releases),
    )


__all__ = ["RenderedEmail", "TYPE_ICONS", "render_release_email"]
