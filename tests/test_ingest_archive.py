"""Tests for export archive reading."""

import json
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from claude_export.errors import ArchiveError, MissingRequiredFileError, ParseError
from claude_export.ingest.archive import extract_all, extract_entry, find_entry, open_archive, read_export


class TestOpenArchive:
    """Tests for open_archive."""

    def test_opens_valid_zip(self, make_export: Callable[..., Path]) -> None:
        """A well-formed zip opens and lists its entries."""
        zip_path = make_export({"conversations.json": []})

        with open_archive(zip_path) as archive:
            assert archive.namelist() == ["conversations.json"]

    def test_missing_file_raises_archive_error(self, tmp_path: Path) -> None:
        """A path that does not exist is an ArchiveError."""
        with pytest.raises(ArchiveError, match="does not exist"):
            open_archive(tmp_path / "missing.zip")

    def test_non_zip_raises_archive_error(self, tmp_path: Path) -> None:
        """A file that is not a zip container is unreadable."""
        path = tmp_path / "export.zip"
        path.write_text("this is not a zip")

        with pytest.raises(ArchiveError):
            open_archive(path)

    def test_missing_file_is_not_missing_entry(self, tmp_path: Path) -> None:
        """Unreadable containers must be distinguishable from missing entries."""
        path = tmp_path / "export.zip"
        path.write_bytes(b"PK\x03\x04garbage")

        with pytest.raises(ArchiveError) as exc_info:
            open_archive(path)

        assert not isinstance(exc_info.value, MissingRequiredFileError)

    def test_crc_mismatch_raises_archive_error(self, tmp_path: Path) -> None:
        """An entry whose bytes no longer match its CRC is reported as corrupt."""
        path = tmp_path / "export.zip"
        original = b'[{"uuid": "abcdef"}]'
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("conversations.json", original)

        data = path.read_bytes()
        assert data.count(original) == 1
        path.write_bytes(data.replace(original, b'[{"uuid": "zzzzzz"}]'))

        with pytest.raises(ArchiveError, match="corrupt entry conversations.json"):
            open_archive(path)


class TestFindEntry:
    """Tests for find_entry."""

    def test_matches_nested_prefix(self, make_export: Callable[..., Path]) -> None:
        """Entry names are matched by substring, tolerating directories."""
        zip_path = make_export({"export-2025/conversations.json": []})

        with open_archive(zip_path) as archive:
            entry = find_entry(archive, "conversations.json")

        assert entry is not None
        assert entry.filename == "export-2025/conversations.json"

    def test_returns_none_when_absent(self, make_export: Callable[..., Path]) -> None:
        """A fragment matching no entry yields None."""
        zip_path = make_export({"conversations.json": []})

        with open_archive(zip_path) as archive:
            assert find_entry(archive, "users.json") is None

    def test_skips_directories(self, tmp_path: Path) -> None:
        """Directory entries never match, even if their name does."""
        zip_path = tmp_path / "export.zip"
        with zipfile.ZipFile(zip_path, "w") as zf:
            zf.writestr("users.json/", "")
            zf.writestr("data/users.json", "[]")

        with open_archive(zip_path) as archive:
            entry = find_entry(archive, "users.json")

        assert entry is not None
        assert entry.filename == "data/users.json"


class TestExtract:
    """Tests for extract_all and extract_entry."""

    def test_extract_all_materialises_entries(self, make_export: Callable[..., Path], tmp_path: Path) -> None:
        """Every entry is written under the destination directory."""
        zip_path = make_export({"conversations.json": [], "nested/users.json": []})
        destination = tmp_path / "scratch"

        with open_archive(zip_path) as archive:
            result = extract_all(archive, destination)

        assert result == destination
        assert (destination / "conversations.json").exists()
        assert (destination / "nested" / "users.json").exists()

    def test_extract_entry_returns_written_path(self, make_export: Callable[..., Path], tmp_path: Path) -> None:
        """The returned path points at the extracted file."""
        zip_path = make_export({"nested/users.json": [{"uuid": "u1"}]})
        destination = tmp_path / "scratch"

        with open_archive(zip_path) as archive:
            path = extract_entry(archive, archive.getinfo("nested/users.json"), destination)

        assert path == destination / "nested" / "users.json"
        assert json.loads(path.read_text()) == [{"uuid": "u1"}]


class TestReadExport:
    """Tests for read_export."""

    def test_conversations_only(
        self, make_export: Callable[..., Path], sample_conversations: list[dict], tmp_path: Path
    ) -> None:
        """Only conversations.json present: users and projects are empty."""
        zip_path = make_export({"conversations.json": sample_conversations})

        export = read_export(zip_path, tmp_path / "scratch")

        assert len(list(export.iter_conversations())) == len(sample_conversations)
        assert export.users == []
        assert export.projects == []

    def test_all_collections(
        self,
        make_export: Callable[..., Path],
        sample_conversations: list[dict],
        sample_users: list[dict],
        sample_projects: list[dict],
        tmp_path: Path,
    ) -> None:
        """Users and projects are loaded eagerly alongside the conversations."""
        zip_path = make_export(
            {
                "conversations.json": sample_conversations,
                "users.json": sample_users,
                "projects.json": sample_projects,
            }
        )

        export = read_export(zip_path, tmp_path / "scratch")

        assert export.users == sample_users
        assert export.projects == sample_projects
        assert sorted(export.entry_names) == ["conversations.json", "projects.json", "users.json"]

    def test_missing_conversations_raises(self, make_export: Callable[..., Path], tmp_path: Path) -> None:
        """The error message names the missing file."""
        zip_path = make_export({"users.json": []})

        with pytest.raises(MissingRequiredFileError) as exc_info:
            read_export(zip_path, tmp_path / "scratch")

        assert "Missing conversations.json" in str(exc_info.value)
        assert exc_info.value.filename == "conversations.json"

    def test_malformed_optional_file_is_empty(
        self, make_export: Callable[..., Path], tmp_path: Path
    ) -> None:
        """A broken users.json degrades to an empty collection."""
        zip_path = make_export({"conversations.json": [], "users.json": "{not json"})

        export = read_export(zip_path, tmp_path / "scratch")

        assert export.users == []

    def test_malformed_conversations_raise_on_iteration(
        self, make_export: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Parse errors in conversations.json surface when streaming."""
        zip_path = make_export({"conversations.json": '[{"uuid": "a"},'})

        export = read_export(zip_path, tmp_path / "scratch")

        with pytest.raises(ParseError):
            list(export.iter_conversations())

    def test_conversations_can_be_streamed_twice(
        self, make_export: Callable[..., Path], sample_conversations: list[dict], tmp_path: Path
    ) -> None:
        """Each iter_conversations() call reopens the extracted file."""
        zip_path = make_export({"conversations.json": sample_conversations})

        export = read_export(zip_path, tmp_path / "scratch")

        assert list(export.iter_conversations()) == list(export.iter_conversations())

    def test_absolute_entry_name_reads_archive_content(
        self, make_export: Callable[..., Path], tmp_path: Path
    ) -> None:
        """An absolute entry name is read from the archive, not from the host path it names."""
        host_file = tmp_path / "outside" / "conversations.json"
        host_file.parent.mkdir()
        host_file.write_text(json.dumps([{"uuid": "from-host"}]))
        zip_path = make_export({str(host_file): [{"uuid": "from-archive"}]})
        scratch = tmp_path / "scratch"

        export = read_export(zip_path, scratch)

        assert [c["uuid"] for c in export.iter_conversations()] == ["from-archive"]
        assert export.conversations_path.is_relative_to(scratch)
        assert json.loads(host_file.read_text()) == [{"uuid": "from-host"}]

    def test_parent_dir_entry_name_stays_in_scratch(
        self, make_export: Callable[..., Path], sample_users: list[dict], tmp_path: Path
    ) -> None:
        """Entries with ".." components are extracted inside the scratch directory."""
        zip_path = make_export(
            {
                "../conversations.json": [{"uuid": "c1"}],
                "../../users.json": sample_users,
            }
        )
        scratch = tmp_path / "work" / "scratch"

        export = read_export(zip_path, scratch)

        assert [c["uuid"] for c in export.iter_conversations()] == ["c1"]
        assert export.users == sample_users
        assert export.conversations_path.is_relative_to(scratch)
        assert not (tmp_path / "work" / "conversations.json").exists()
