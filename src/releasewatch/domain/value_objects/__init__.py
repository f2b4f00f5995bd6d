"""Value objects."""

from .release_key import compute_release_hash, normalize_title

__all__ = ["compute_release_hash", "normalize_title"]
