"""Release date parsing shared by all platform clients.

Providers report dates with different precision: Spotify gives "2024", "2024-05"
or "2024-05-17" depending on release_date_precision, SoundCloud gives full ISO
timestamps, Steam gives epoch seconds. Partial dates resolve to the START of the
period they name, so "2024-05" counts as 2024-05-01.
"""

import re
from datetime import UTC, date, datetime

_ISO_PARTIAL = re.compile(r"^(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$")


def parse_release_date(value: str | int | float | None) -> datetime | None:
    """Parse a provider release date into an aware UTC datetime.

    Returns None for anything unparseable (empty strings, "TBA", garbage).
    """
    if value is None or value == "":
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    text = value.strip()
    match = _ISO_PARTIAL.match(text)
    if match:
        year, month, day = match.groups()
        try:
            parsed = date(int(year), int(month or 1), int(day or 1))
        except ValueError:
            return None
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=UTC)

    try:
        parsed_dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed_dt.tzinfo is None:
        return parsed_dt.replace(tzinfo=UTC)
    return parsed_dt.astimezone(UTC)


__all__ = ["parse_release_date"]
