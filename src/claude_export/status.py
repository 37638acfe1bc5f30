"""Store and output directory status."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from claude_export.store.database import RecordStore
from claude_export.store.queries import find_processed, find_recent, find_unprocessed


@dataclass
class StatusReport:
    """Snapshot of the record store and the rendered documents."""

    database_dir: Path
    output_dir: Path
    database_exists: bool
    meta: dict[str, Any] = field(default_factory=dict)
    users: int = 0
    projects: int = 0
    conversations: int = 0
    processed: int = 0
    unprocessed: int = 0
    markdown_files: int = 0
    markdown_bytes: int = 0
    most_recent: dict[str, Any] | None = None


def summarize_output_dir(output_dir: Path) -> tuple[int, int]:
    """Count .md files in output_dir and their total size in bytes."""
    if not output_dir.is_dir():
        return 0, 0

    count = 0
    total = 0
    for path in output_dir.glob("*.md"):
        if path.is_file():
            count += 1
            total += path.stat().st_size
    return count, total


def collect_status(database_dir: Path, output_dir: Path) -> StatusReport:
    """Gather store counts and output directory statistics.

    Read-only: a missing database directory or collection file is
    reported as empty, never created.
    """
    report = StatusReport(
        database_dir=database_dir,
        output_dir=output_dir,
        database_exists=database_dir.is_dir(),
    )
    report.markdown_files, report.markdown_bytes = summarize_output_dir(output_dir)

    if not report.database_exists:
        return report

    store = RecordStore(database_dir)
    store.init(create=False)
    try:
        report.meta = store.get_meta()
        report.users = store.users.count()
        report.projects = store.projects.count()
        report.conversations = store.conversations.count()
        report.processed = len(find_processed(store.conversations))
        report.unprocessed = len(find_unprocessed(store.conversations))

        recent = find_recent(store.conversations, limit=1)
        report.most_recent = recent[0] if recent else None
    finally:
        store.close()

    return report
