"""
Unit tests for storage key resolution.

Key resolution is pure, so these tests pass explicit timestamps instead
of patching the clock.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from src.core.errors import ValidationError
from src.core.models import ByHash, ByTimestamp
from src.core.uploads.keys import (
    choose_addressing,
    contributor_namespace,
    format_timestamp,
    resolve_object_key,
    safe_filename,
)

UPLOAD_TIME = datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)


class TestSafeFilename:
    """Tests for filename sanitization."""

    @pytest.mark.parametrize("filename", [
        "My Photo #1.JPG",
        "résumé (final).pdf",
        "../../etc/passwd",
        "emoji 🎉.png",
        "tab\tand\nnewline.gif",
    ])
    def test_output_uses_only_allowed_characters(self, filename):
        """Everything outside [A-Za-z0-9._-] is replaced."""
        assert re.fullmatch(r"[A-Za-z0-9._-]+", safe_filename(filename))

    def test_each_unsafe_character_becomes_one_underscore(self):
        assert safe_filename("My Photo #1.JPG") == "My_Photo__1.JPG"

    def test_safe_names_pass_through(self):
        assert safe_filename("IMG_0042-edit.heic") == "IMG_0042-edit.heic"


class TestContributorNamespace:
    """Tests for the contributor folder name."""

    def test_default_namespace(self):
        assert contributor_namespace() == "Memorial_Guest_UPLOADS"

    def test_empty_name_falls_back_to_default(self):
        assert contributor_namespace("") == "Memorial_Guest_UPLOADS"

    def test_non_alphanumerics_become_underscores(self):
        """Dots and dashes are not kept in contributor names, unlike filenames."""
        assert contributor_namespace("Mary-Jane O.") == "Mary_Jane_O__UPLOADS"


class TestFormatTimestamp:
    """Tests for the timestamp discriminator."""

    def test_nineteen_characters_without_colons_or_dots(self):
        stamp = format_timestamp(UPLOAD_TIME)

        assert stamp == "2024-05-01T12-30-45"
        assert len(stamp) == 19

    def test_converts_to_utc(self):
        """Keys are comparable across client time zones."""
        local = UPLOAD_TIME.astimezone(timezone(timedelta(hours=-7)))
        assert format_timestamp(local) == "2024-05-01T12-30-45"

    def test_naive_datetime_without_microseconds(self):
        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03-04-05"


class TestChooseAddressing:
    """Tests for picking hash vs timestamp addressing."""

    def test_hash_wins_when_present(self):
        assert choose_addressing("abc123", UPLOAD_TIME) == ByHash("abc123")

    @pytest.mark.parametrize("content_hash", [None, ""])
    def test_timestamp_without_hash(self, content_hash):
        assert choose_addressing(content_hash, UPLOAD_TIME) == ByTimestamp(UPLOAD_TIME)


class TestResolveObjectKey:
    """Tests for full key resolution."""

    def test_timestamp_key_scenario(self):
        """A guest upload with no hash lands in the guest folder under its upload second."""
        key = resolve_object_key("My Photo #1.JPG", ByTimestamp(UPLOAD_TIME))

        assert re.fullmatch(
            r"Memorial_Guest_UPLOADS/.{19}_My_Photo__1\.JPG", key
        )
        assert key == "Memorial_Guest_UPLOADS/2024-05-01T12-30-45_My_Photo__1.JPG"

    def test_hash_key_scenario(self):
        key = resolve_object_key("a.png", ByHash("abc123"))
        assert key == "Memorial_Guest_UPLOADS/abc123_a.png"

    def test_same_hash_and_filename_is_idempotent(self):
        """Hash keys don't depend on when they're resolved."""
        first = resolve_object_key("a.png", choose_addressing("abc123", UPLOAD_TIME))
        later = resolve_object_key(
            "a.png",
            choose_addressing("abc123", UPLOAD_TIME + timedelta(days=3)),
        )

        assert first == later

    def test_different_hash_gives_different_key(self):
        assert (
            resolve_object_key("a.png", ByHash("abc123"))
            != resolve_object_key("a.png", ByHash("def456"))
        )

    def test_different_filename_gives_different_key(self):
        assert (
            resolve_object_key("a.png", ByHash("abc123"))
            != resolve_object_key("b.png", ByHash("abc123"))
        )

    def test_timestamp_keys_differ_a_second_apart(self):
        first = resolve_object_key("a.png", ByTimestamp(UPLOAD_TIME))
        second = resolve_object_key("a.png", ByTimestamp(UPLOAD_TIME + timedelta(seconds=1.5)))

        assert first != second

    def test_contributor_sets_folder(self):
        key = resolve_object_key("a.png", ByHash("abc"), contributor="Aunt Sue")
        assert key == "Aunt_Sue_UPLOADS/abc_a.png"

    @pytest.mark.parametrize("filename", [None, ""])
    def test_rejects_missing_filename(self, filename):
        with pytest.raises(ValidationError, match="Filename is required"):
            resolve_object_key(filename, ByTimestamp(UPLOAD_TIME))

    @pytest.mark.parametrize("content_hash", ["x/../y", "abc/def", "a b", "sha256:abc", "ab+c=="])
    def test_rejects_hash_with_unsafe_characters(self, content_hash):
        """A hash can't add folders or odd characters to the key."""
        with pytest.raises(ValidationError, match="File hash"):
            resolve_object_key("a.png", ByHash(content_hash))

    def test_accepts_hex_and_dotted_hashes(self):
        assert resolve_object_key("a.png", ByHash("9f86d081.v2-x_y")) == "Memorial_Guest_UPLOADS/9f86d081.v2-x_y_a.png"
