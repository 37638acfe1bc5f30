"""Local record store for users, projects and conversations."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Self

from claude_export.errors import StorageIOError
from claude_export.logging import get_logger
from claude_export.store.collection import Collection, read_json_file, write_json_file

logger = get_logger("store")

SCHEMA_VERSION = "1.0.0"


def default_meta() -> dict[str, Any]:
    return {
        "lastProcessed": None,
        "version": SCHEMA_VERSION,
        "stats": {
            "totalConversations": 0,
            "totalUsers": 0,
            "totalProjects": 0,
        },
    }


class RecordStore:
    """One JSON file per collection plus a metadata file in database_dir.

    The store must be opened with init() (or used as a context manager)
    before its collections are accessed. Only one process should use a
    database directory at a time.
    """

    def __init__(self, database_dir: Path) -> None:
        """Prepare a store rooted at database_dir.

        Args:
            database_dir: Directory holding users.json, projects.json,
                          conversations.json and meta.json
        """
        self._database_dir = database_dir
        self.users_path = database_dir / "users.json"
        self.projects_path = database_dir / "projects.json"
        self.conversations_path = database_dir / "conversations.json"
        self.meta_path = database_dir / "meta.json"

        self._users: Collection | None = None
        self._projects: Collection | None = None
        self._conversations: Collection | None = None
        self._meta: dict[str, Any] | None = None

    @property
    def database_dir(self) -> Path:
        return self._database_dir

    def init(self, create: bool = True) -> None:
        """Load every collection.

        Args:
            create: Create the directory and any missing files. With False
                    nothing is written and missing files read as empty.
        """
        logger.debug("Initializing database: dir=%s create=%s", self._database_dir, create)
        if create:
            try:
                self._database_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageIOError(f"Cannot create database directory {self._database_dir}: {e}") from e

        self._users = Collection("users", self.users_path, create=create)
        self._projects = Collection("projects", self.projects_path, create=create)
        self._conversations = Collection("conversations", self.conversations_path, create=create)

        meta = read_json_file(self.meta_path, default_meta(), create=create)
        if not isinstance(meta, dict):
            raise StorageIOError(f"Database file does not hold a JSON object: {self.meta_path}")
        self._meta = meta

        logger.debug(
            "Database initialized: users=%d projects=%d conversations=%d",
            self._users.count(),
            self._projects.count(),
            self._conversations.count(),
        )

    def close(self) -> None:
        """Drop the in-memory collections. State is already on disk."""
        self._users = None
        self._projects = None
        self._conversations = None
        self._meta = None

    @property
    def is_open(self) -> bool:
        return self._conversations is not None

    def _opened(self, collection: Collection | None) -> Collection:
        if collection is None:
            raise RuntimeError("RecordStore used before init()")
        return collection

    @property
    def users(self) -> Collection:
        return self._opened(self._users)

    @property
    def projects(self) -> Collection:
        return self._opened(self._projects)

    @property
    def conversations(self) -> Collection:
        return self._opened(self._conversations)

    def get_meta(self) -> dict[str, Any]:
        """Return a copy of the store metadata."""
        if self._meta is None:
            raise RuntimeError("RecordStore used before init()")
        return dict(self._meta)

    def update_meta(self, **fields: Any) -> dict[str, Any]:
        """Merge fields into the metadata, restamp it and persist.

        lastProcessed is set to the current UTC time and stats are
        recomputed from the collection counts.
        """
        if self._meta is None:
            raise RuntimeError("RecordStore used before init()")

        self._meta = {
            **self._meta,
            **fields,
            "lastProcessed": datetime.now(timezone.utc).isoformat(),
            "stats": {
                "totalConversations": self.conversations.count(),
                "totalUsers": self.users.count(),
                "totalProjects": self.projects.count(),
            },
        }
        write_json_file(self.meta_path, self._meta)
        return dict(self._meta)

    def __enter__(self) -> Self:
        """Enter context manager, opening the store."""
        self.init()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Exit context manager, closing the store."""
        self.close()
