"""Typed views over export records.

Records are persisted exactly as they appear in the export (plain dicts).
The renderer reads messages through these dataclasses so that content items
are dispatched on their ``type`` tag instead of on field presence.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class TextItem:
    """Plain text content block."""

    text: str
    type: str = "text"


@dataclass
class ToolUseItem:
    """A tool invocation requested by the assistant."""

    name: str
    input: Any = None
    type: str = "tool_use"


@dataclass
class ToolResultItem:
    """The output returned by a tool."""

    name: str
    content: Any = None
    is_error: bool = False
    type: str = "tool_result"


ContentItem = TextItem | ToolUseItem | ToolResultItem


def parse_content_item(data: Any) -> ContentItem | None:
    """Build a typed content item from its dict form.

    Unknown or malformed items return None so newer export formats
    degrade to skipping the block instead of failing.
    """
    if not isinstance(data, dict):
        return None

    item_type = data.get("type")
    if item_type == "text":
        return TextItem(text=data.get("text") or "")
    if item_type == "tool_use":
        return ToolUseItem(name=data.get("name") or "Unknown", input=data.get("input"))
    if item_type == "tool_result":
        return ToolResultItem(
            name=data.get("name") or "Unknown",
            content=data.get("content"),
            is_error=bool(data.get("is_error", False)),
        )
    return None


def _parse_size(value: Any) -> int:
    """Attachment size in bytes; missing or non-numeric values count as 0."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class Attachment:
    """File attached to a message."""

    file_name: str
    file_type: str
    file_size: int
    extracted_content: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(
            file_name=data.get("file_name") or "unnamed",
            file_type=data.get("file_type") or "unknown",
            file_size=_parse_size(data.get("file_size")),
            extracted_content=data.get("extracted_content") or None,
        )


@dataclass
class Message:
    """A single chat message."""

    uuid: str | None
    sender: str
    created_at: str | None = None
    text: str | None = None
    content: list[ContentItem] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def sender_label(self) -> str:
        """Display label: human messages are from the user, all else Claude."""
        return "User" if self.sender == "human" else "Claude"

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        raw_content = data.get("content")
        content: list[ContentItem] = []
        if isinstance(raw_content, list):
            for raw_item in raw_content:
                item = parse_content_item(raw_item)
                if item is not None:
                    content.append(item)

        raw_attachments = data.get("attachments")
        attachments = []
        if isinstance(raw_attachments, list):
            attachments = [Attachment.from_dict(a) for a in raw_attachments if isinstance(a, dict)]

        return cls(
            uuid=data.get("uuid"),
            sender=data.get("sender") or "",
            created_at=data.get("created_at"),
            text=data.get("text") or None,
            content=content,
            attachments=attachments,
        )


def parse_timestamp(timestamp_str: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp.

    Args:
        timestamp_str: ISO 8601 timestamp string (e.g., "2025-01-01T12:00:00.590Z")

    Returns:
        datetime, converted to naive UTC when an offset is present, or
        None when the value is missing or unparseable
    """
    if not timestamp_str or not isinstance(timestamp_str, str):
        return None

    try:
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
    except ValueError:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def timestamp_sort_key(timestamp_str: str | None) -> float:
    """Sortable number for a timestamp; missing values sort as the epoch."""
    dt = parse_timestamp(timestamp_str)
    if dt is None:
        return 0.0
    return dt.replace(tzinfo=timezone.utc).timestamp()
