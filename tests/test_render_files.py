"""Tests for document naming helpers."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from claude_export.render.files import (
    build_filename,
    conversation_url,
    extract_conversation_uuid,
    format_file_size,
    slugify,
)


class TestSlugify:
    """Tests for slugify."""

    def test_hyphenates_and_lowercases(self) -> None:
        """Runs of non-alphanumerics collapse to one hyphen."""
        assert slugify("Test Project!!") == "test-project"

    def test_caps_length(self) -> None:
        """Slugs are cut to 50 characters."""
        assert slugify("a" * 80) == "a" * 50

    def test_nothing_left(self) -> None:
        """Names without ASCII alphanumerics give an empty slug."""
        assert slugify("שלום") == ""


class TestBuildFilename:
    """Tests for build_filename."""

    def test_timestamp_and_slug(self) -> None:
        """The filename joins the UTC creation time and the slug."""
        conversation = {"uuid": "abc-123", "name": "Test Project!!", "created_at": "2025-01-01T12:00:00Z"}

        filename = build_filename(conversation)

        assert filename.startswith("20250101_120000_test-project")
        assert filename == "20250101_120000_test-project.md"

    def test_uuid_when_name_missing(self) -> None:
        """Without a name the uuid is used."""
        conversation = {"uuid": "abc-123", "created_at": "2025-01-01T12:00:00Z"}

        assert build_filename(conversation) == "20250101_120000_abc-123.md"

    def test_uuid_when_slug_empty(self) -> None:
        """A name that slugifies to nothing falls back to the uuid."""
        conversation = {"uuid": "abc-123", "name": "!!!", "created_at": "2025-01-01T12:00:00Z"}

        assert build_filename(conversation) == "20250101_120000_abc-123.md"

    def test_created_at_converted_to_utc(self) -> None:
        """Offset timestamps are converted to UTC."""
        conversation = {"uuid": "abc", "name": "x", "created_at": "2025-01-01T14:00:00+02:00"}

        assert build_filename(conversation) == "20250101_120000_x.md"

    def test_now_when_created_at_missing(self) -> None:
        """A missing created_at uses the supplied clock."""
        now = datetime(2025, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

        assert build_filename({"uuid": "abc", "name": "x"}, now=now) == "20250506_070809_x.md"


class TestFormatFileSize:
    """Tests for format_file_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 bytes"),
            (None, "0 bytes"),
            (1023, "1023 bytes"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1.0 MB"),
            (3 * 1024**3, "3.0 GB"),
        ],
    )
    def test_units(self, size: int | None, expected: str) -> None:
        """Sizes pick the largest unit below 1024."""
        assert format_file_size(size) == expected


class TestConversationUrl:
    """Tests for the chat URL helpers."""

    def test_url(self) -> None:
        """The URL is the chat base plus the uuid."""
        assert conversation_url("abc-123") == "https://claude.ai/chat/abc-123"

    def test_extract_uuid_from_document(self, tmp_path: Path) -> None:
        """The uuid is read back from the footer link."""
        path = tmp_path / "doc.md"
        path.write_text("# Title\n\nOriginal conversation: https://claude.ai/chat/0f3a-99bc\n", encoding="utf-8")

        assert extract_conversation_uuid(path) == "0f3a-99bc"

    def test_extract_uuid_missing(self, tmp_path: Path) -> None:
        """Documents without a link, or missing files, yield None."""
        path = tmp_path / "doc.md"
        path.write_text("# Title\n", encoding="utf-8")

        assert extract_conversation_uuid(path) is None
        assert extract_conversation_uuid(tmp_path / "absent.md") is None
