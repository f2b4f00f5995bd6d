"""Uniqueness hash for detected releases.

Hey future me - the hash is the dedup key in the releases table. Two candidates
with the same (entity, type, normalized title) are the SAME release, no matter
which provider reported them or how the title was capitalized/spaced.

Exact equality only. No substring matching: "Album" must not swallow
"Album (Deluxe)". Those are different releases and both get notified.
"""

import hashlib
import re
import unicodedata

from releasewatch.domain.entities import EntityType

_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = " \t\n\r.,;:!?-_\"'`"


def normalize_title(title: str) -> str:
    """Normalize a title for comparison.

    NFKC folds compatibility characters (full-width letters, ligatures),
    casefold handles case including German sharp s, and runs of whitespace
    collapse to a single space.
    """
    text = unicodedata.normalize("NFKC", title).casefold()
    text = _WHITESPACE.sub(" ", text)
    return text.strip(_EDGE_PUNCTUATION)


def compute_release_hash(
    source_entity_id: str, release_type: EntityType | str, title: str
) -> str:
    """Stable SHA-256 hex digest for a release candidate."""
    type_value = (
        release_type.value if isinstance(release_type, EntityType) else release_type
    )
    key = f"{source_entity_id}|{type_value}|{normalize_title(title)}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


__all__ = ["compute_release_hash", "normalize_title"]
