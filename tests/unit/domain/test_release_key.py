"""Tests for release title normalization and the uniqueness hash."""

import hashlib

from releasewatch.domain.entities import EntityType
from releasewatch.domain.value_objects import compute_release_hash, normalize_title


class TestNormalizeTitle:
    def test_case_and_whitespace_are_folded(self) -> None:
        assert normalize_title("  Random   Access\tMemories ") == "random access memories"

    def test_compatibility_characters_are_folded(self) -> None:
        # Full-width letters and German sharp s
        assert normalize_title("ＡＢＣ") == "abc"
        assert normalize_title("Straße") == normalize_title("STRASSE")

    def test_edge_punctuation_is_stripped(self) -> None:
        assert normalize_title("Discovery!") == "discovery"
        assert normalize_title("...Ready?") == "ready"


class TestComputeReleaseHash:
    def test_is_sha256_of_entity_type_and_title(self) -> None:
        expected = hashlib.sha256(b"a1|artist|daft punk - homework").hexdigest()
        assert compute_release_hash("a1", EntityType.ARTIST, "Daft Punk - Homework") == expected

    def test_equivalent_titles_collide(self) -> None:
        first = compute_release_hash("a1", EntityType.ARTIST, "Daft Punk - Homework")
        second = compute_release_hash("a1", "artist", "  DAFT PUNK -   homework ")
        assert first == second

    def test_different_entities_do_not_collide(self) -> None:
        first = compute_release_hash("a1", EntityType.ARTIST, "Homework")
        second = compute_release_hash("a2", EntityType.ARTIST, "Homework")
        assert first != second

    def test_deluxe_edition_is_a_different_release(self) -> None:
        plain = compute_release_hash("a1", EntityType.ARTIST, "Album")
        deluxe = compute_release_hash("a1", EntityType.ARTIST, "Album (Deluxe)")
        assert plain != deluxe
