"""Incremental sync of export records into the record store.

Users and projects are always upserted. Conversations are only written when
they are new, changed since the last run, not yet rendered, or when the run
is forced.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from claude_export.errors import InvalidRecordError
from claude_export.logging import get_logger
from claude_export.models import timestamp_sort_key
from claude_export.store.database import RecordStore

logger = get_logger("sync")


class SyncDecision(str, Enum):
    """Why a conversation is (or is not) reprocessed."""

    FORCED = "forced"
    NEW = "new"
    UNPROCESSED = "unprocessed"
    CHANGED = "changed"
    UP_TO_DATE = "up_to_date"

    @property
    def should_process(self) -> bool:
        return self is not SyncDecision.UP_TO_DATE


def sync_decision(force: bool, existing: dict | None, incoming: dict) -> SyncDecision:
    """Classify an incoming conversation against its stored version.

    Args:
        force: Reprocess regardless of stored state
        existing: Stored record with the same uuid, or None
        incoming: Conversation from the export

    Returns:
        The first matching reason, UP_TO_DATE if none apply
    """
    if force:
        return SyncDecision.FORCED
    if existing is None:
        return SyncDecision.NEW
    if existing.get("processed") is not True:
        return SyncDecision.UNPROCESSED
    if existing.get("updated_at") != incoming.get("updated_at"):
        return SyncDecision.CHANGED
    return SyncDecision.UP_TO_DATE


def should_process(force: bool, existing: dict | None, incoming: dict) -> bool:
    """True if the incoming conversation must be stored and re-rendered."""
    return sync_decision(force, existing, incoming).should_process


def needs_render(force: bool, record: dict) -> bool:
    """True if a stored conversation has no up-to-date document."""
    if force:
        return True
    return record.get("processed") is not True or not record.get("markdownPath")


def require_uuid(record: Any, kind: str) -> str:
    """Return the record's uuid or raise InvalidRecordError."""
    if not isinstance(record, dict) or not record.get("uuid"):
        raise InvalidRecordError(f"Skipping invalid {kind} without UUID")
    return record["uuid"]


def sort_by_updated_desc(conversations: Iterable[Any]) -> list[Any]:
    """Newest first. Only affects processing order and log output."""
    return sorted(
        conversations,
        key=lambda c: timestamp_sort_key(c.get("updated_at")) if isinstance(c, dict) else 0.0,
        reverse=True,
    )


@dataclass
class SyncResult:
    """Counters from one conversation sync pass."""

    processed: int = 0
    skipped: int = 0
    invalid: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.invalid


def store_users_and_projects(
    store: RecordStore,
    users: Iterable[Any],
    projects: Iterable[Any],
) -> tuple[int, int]:
    """Upsert every user and project.

    Re-upserting is idempotent so no change tracking is done. Records
    without a uuid are logged and skipped.

    Returns:
        Tuple of (users stored, projects stored)
    """
    counts = []
    for kind, collection, records in (
        ("user", store.users, users),
        ("project", store.projects, projects),
    ):
        stored = 0
        for record in records:
            try:
                require_uuid(record, kind)
            except InvalidRecordError as e:
                logger.warning("%s", e)
                continue
            collection.upsert(record)
            stored += 1
        logger.info("Stored %d %ss", stored, kind)
        counts.append(stored)

    return counts[0], counts[1]


def sync_conversations(
    store: RecordStore,
    conversations: Iterable[Any],
    force: bool = False,
) -> SyncResult:
    """Write new and changed conversations into the store.

    The batch is sorted newest first, which materialises it in memory.
    Each decision is independent per uuid, so order does not affect the
    end state.

    Args:
        store: Opened RecordStore
        conversations: Conversation records from the export
        force: Reprocess every conversation

    Returns:
        SyncResult with processed/skipped/invalid counts
    """
    result = SyncResult()

    for conversation in sort_by_updated_desc(conversations):
        try:
            uuid = require_uuid(conversation, "conversation")
        except InvalidRecordError as e:
            logger.warning("%s", e)
            result.invalid += 1
            continue

        existing = store.conversations.find_by_key(uuid)
        decision = sync_decision(force, existing, conversation)

        if not decision.should_process:
            logger.debug("Skipping conversation (already processed): uuid=%s", uuid)
            result.skipped += 1
            continue

        record = dict(conversation)
        if existing is not None and decision is SyncDecision.CHANGED:
            # Content changed, so the existing document is stale
            record["processed"] = False
        store.conversations.upsert(record)
        result.processed += 1
        logger.debug("Stored conversation: uuid=%s reason=%s", uuid, decision.value)

    logger.info(
        "Stored %d conversations (skipped %d, invalid %d)",
        result.processed,
        result.skipped,
        result.invalid,
    )
    return result
