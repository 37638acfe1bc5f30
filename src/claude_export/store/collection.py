"""Generic JSON-file backed record collection."""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from claude_export.errors import InvalidRecordError, StorageIOError
from claude_export.logging import get_logger

logger = get_logger("store")

Record = dict[str, Any]
KeyFunc = Callable[[Record], Any]


def uuid_key(record: Record) -> Any:
    """Default key extractor: the record's uuid field."""
    return record.get("uuid")


def read_json_file(path: Path, default: Any, create: bool = True) -> Any:
    """Read a JSON document.

    A missing file yields default; it is also written to disk unless
    create is False.
    """
    if not path.exists():
        if create:
            write_json_file(path, default)
        return default

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageIOError(f"Database file is not valid JSON: {path}: {e}") from e
    except OSError as e:
        raise StorageIOError(f"Failed to read database file: {path}: {e}") from e


def write_json_file(path: Path, data: Any) -> None:
    """Write a JSON document atomically (temp file, then rename)."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageIOError(f"Failed to write database file: {path}: {e}") from e


class Collection:
    """A named collection of records persisted as one JSON array file.

    Every mutating call rewrites the whole file before returning, so at most
    the in-flight operation is lost on a crash. Records are copied on the way
    in and out; changing a returned dict does not change stored state.
    """

    def __init__(self, name: str, path: Path, key: KeyFunc = uuid_key, create: bool = True) -> None:
        """Load a collection from its backing file.

        Args:
            name: Collection name (used in log lines)
            path: JSON file holding the collection
            key: Function extracting the unique key from a record
            create: Write an empty file when path does not exist
        """
        self.name = name
        self._path = path
        self._key = key

        data = read_json_file(path, [], create=create)
        if not isinstance(data, list):
            raise StorageIOError(f"Database file does not hold a JSON array: {path}")

        self._records: list[Record] = [r for r in data if isinstance(r, dict)]
        self._reindex()

    @property
    def path(self) -> Path:
        return self._path

    def _reindex(self) -> None:
        self._positions = {self._key(r): i for i, r in enumerate(self._records)}

    def _commit(self, records: list[Record]) -> None:
        # Disk first: a failed write leaves the in-memory state untouched
        write_json_file(self._path, records)
        self._records = records
        self._reindex()

    def _require_key(self, record: Record) -> Any:
        key = self._key(record)
        if key is None:
            raise InvalidRecordError(f"Record in {self.name} has no key")
        return key

    def find_all(self) -> list[Record]:
        """Return copies of all records in insertion order."""
        return [dict(r) for r in self._records]

    def find_by_key(self, key: Any) -> Record | None:
        """Return a copy of the record with this key, or None."""
        position = self._positions.get(key)
        if position is None:
            return None
        return dict(self._records[position])

    def count(self) -> int:
        return len(self._records)

    def exists(self, key: Any) -> bool:
        return key in self._positions

    def insert(self, record: Record) -> Record:
        """Append a new record and persist.

        Raises:
            InvalidRecordError: If the record has no key or the key is taken
        """
        key = self._require_key(record)
        if key in self._positions:
            raise InvalidRecordError(f"Duplicate key in {self.name}: {key}")

        stored = dict(record)
        self._commit([*self._records, stored])
        return dict(stored)

    def update(self, key: Any, updates: Record) -> Record | None:
        """Shallow-merge updates into an existing record and persist.

        Fields present in updates overwrite; absent fields are kept.

        Returns:
            The updated record, or None if no record has this key

        Raises:
            InvalidRecordError: If the merged record loses its key or takes
                the key of another record
        """
        position = self._positions.get(key)
        if position is None:
            return None

        merged = {**self._records[position], **updates}
        new_key = self._require_key(merged)
        if new_key != key and new_key in self._positions:
            raise InvalidRecordError(f"Duplicate key in {self.name}: {new_key}")

        records = list(self._records)
        records[position] = merged
        self._commit(records)
        return dict(merged)

    def delete(self, key: Any) -> bool:
        """Remove the record with this key and persist.

        Returns:
            True if a record was removed, False if none matched
        """
        position = self._positions.get(key)
        if position is None:
            return False

        self._commit(self._records[:position] + self._records[position + 1 :])
        return True

    def upsert(self, record: Record) -> Record:
        """Update the record if its key exists, otherwise insert it."""
        key = self._require_key(record)
        updated = self.update(key, record)
        if updated is None:
            return self.insert(record)
        return updated
