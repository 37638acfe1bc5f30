"""Export archive reading.

A Claude export is a zip file holding conversations.json (required) and
users.json / projects.json (optional), possibly under a nested directory.
"""

import zipfile
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from claude_export.errors import ArchiveError, MissingRequiredFileError, StorageIOError
from claude_export.ingest.stream import PROGRESS_EVERY, iter_json_array, load_json_array
from claude_export.logging import get_logger

logger = get_logger("archive")

CONVERSATIONS_FILE = "conversations.json"
USERS_FILE = "users.json"
PROJECTS_FILE = "projects.json"


@dataclass
class ExportData:
    """Contents of an extracted export.

    Users and projects are small and loaded eagerly. Conversations stay on
    disk and are streamed on demand; each call to iter_conversations()
    reopens the extracted file.
    """

    archive_path: Path
    conversations_path: Path
    users: list[dict] = field(default_factory=list)
    projects: list[dict] = field(default_factory=list)
    entry_names: list[str] = field(default_factory=list)
    progress_every: int = PROGRESS_EVERY

    def iter_conversations(self) -> Iterator[Any]:
        """Stream conversation records from the extracted file."""
        return iter_json_array(
            self.conversations_path,
            label="conversations",
            progress_every=self.progress_every,
        )


def open_archive(path: Path) -> zipfile.ZipFile:
    """Open and verify an export archive.

    Args:
        path: Path to the zip file

    Returns:
        Open ZipFile handle (caller closes it)

    Raises:
        ArchiveError: If the file is missing, not a zip, or corrupt
    """
    if not path.exists():
        raise ArchiveError(f"Archive does not exist: {path}")

    try:
        archive = zipfile.ZipFile(path, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"Failed to process zip file: {e}") from e

    try:
        bad_entry = archive.testzip()
    except (zipfile.BadZipFile, OSError, EOFError) as e:
        archive.close()
        raise ArchiveError(f"Failed to process zip file: {e}") from e

    if bad_entry is not None:
        archive.close()
        raise ArchiveError(f"Failed to process zip file: corrupt entry {bad_entry}")

    return archive


def find_entry(archive: zipfile.ZipFile, name_fragment: str) -> zipfile.ZipInfo | None:
    """Find the first file entry whose name contains name_fragment."""
    for info in archive.infolist():
        if info.is_dir():
            continue
        if name_fragment in info.filename:
            return info
    return None


def extract_all(archive: zipfile.ZipFile, destination: Path) -> Path:
    """Extract every entry of the archive into destination.

    The streaming parser needs a real file to read from, so entries are
    materialised on disk rather than read from the zip stream.

    Returns:
        The destination directory
    """
    try:
        destination.mkdir(parents=True, exist_ok=True)
        archive.extractall(destination)
    except (zipfile.BadZipFile, EOFError) as e:
        raise ArchiveError(f"Failed to extract zip file: {e}") from e
    except OSError as e:
        raise StorageIOError(f"Failed to extract zip file to {destination}: {e}") from e
    return destination


def extract_entry(archive: zipfile.ZipFile, entry: zipfile.ZipInfo, destination: Path) -> Path:
    """Extract a single entry and return where it was written.

    zipfile strips absolute prefixes and ".." components from entry names,
    so the returned path is always inside destination and can differ from
    destination / entry.filename.
    """
    try:
        return Path(archive.extract(entry, destination))
    except (zipfile.BadZipFile, EOFError) as e:
        raise ArchiveError(f"Failed to extract {entry.filename}: {e}") from e
    except OSError as e:
        raise StorageIOError(f"Failed to extract {entry.filename} to {destination}: {e}") from e


def read_export(
    archive_path: Path,
    scratch_dir: Path,
    progress_every: int = PROGRESS_EVERY,
) -> ExportData:
    """Extract an export archive and load its collections.

    Only the conversations, users and projects entries are extracted.

    Args:
        archive_path: Path to the export zip file
        scratch_dir: Directory to extract entries into
        progress_every: Progress log cadence for the conversations stream

    Returns:
        ExportData with users/projects loaded and conversations ready to stream

    Raises:
        ArchiveError: If the archive is unreadable
        MissingRequiredFileError: If conversations.json is absent
    """
    logger.debug("Processing zip file: path=%s", archive_path)

    with open_archive(archive_path) as archive:
        conversations_entry = find_entry(archive, CONVERSATIONS_FILE)
        users_entry = find_entry(archive, USERS_FILE)
        projects_entry = find_entry(archive, PROJECTS_FILE)

        if conversations_entry is None:
            raise MissingRequiredFileError(CONVERSATIONS_FILE)

        entry_names = archive.namelist()
        conversations_path = extract_entry(archive, conversations_entry, scratch_dir)
        users_path = extract_entry(archive, users_entry, scratch_dir) if users_entry else None
        projects_path = extract_entry(archive, projects_entry, scratch_dir) if projects_entry else None

    users = load_json_array(users_path) if users_path else []
    projects = load_json_array(projects_path) if projects_path else []

    logger.debug(
        "Found export entries: conversations=%s users=%s projects=%s",
        conversations_entry.filename,
        users_entry.filename if users_entry else None,
        projects_entry.filename if projects_entry else None,
    )

    return ExportData(
        archive_path=archive_path,
        conversations_path=conversations_path,
        users=users,
        projects=projects,
        entry_names=entry_names,
        progress_every=progress_every,
    )
