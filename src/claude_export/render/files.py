"""Output file naming and size formatting."""

import re
from datetime import datetime, timezone
from pathlib import Path

from claude_export.models import parse_timestamp

SLUG_MAX_LENGTH = 50
CHAT_URL = "https://claude.ai/chat/"
CHAT_URL_RE = re.compile(r"https://claude\.ai/chat/([a-f0-9-]+)")

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lower-case, hyphenate runs of non-alphanumerics, trim, cap length.

    Returns an empty string when nothing alphanumeric remains.
    """
    slug = _NON_ALNUM_RE.sub("-", name.lower()).strip("-")
    return slug[:max_length]


def build_filename(conversation: dict, now: datetime | None = None) -> str:
    """Document filename: <YYYYMMDD_HHMMSS>_<slug-or-uuid>.md.

    The timestamp is created_at in UTC, or now when created_at is missing or
    unparseable. The slug falls back to the uuid when the name is absent or
    sanitises to nothing.

    Args:
        conversation: Conversation record
        now: Clock override for missing created_at (defaults to current UTC time)

    Returns:
        The filename (no directory)
    """
    created = parse_timestamp(conversation.get("created_at"))
    if created is None:
        created = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).replace(tzinfo=None)
    timestamp = created.strftime("%Y%m%d_%H%M%S")

    uuid = str(conversation.get("uuid"))
    name = conversation.get("name")
    slug = slugify(name) if isinstance(name, str) and name else ""

    return f"{timestamp}_{slug or uuid}.md"


def format_file_size(size: int | float | None) -> str:
    """Human-readable size: bytes, KB, MB or GB with one decimal."""
    size = size or 0
    if size < 1024:
        return f"{int(size)} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def conversation_url(uuid: str | None) -> str:
    return f"{CHAT_URL}{uuid}"


def extract_conversation_uuid(path: Path) -> str | None:
    """Read the source conversation uuid back from a rendered document."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    match = CHAT_URL_RE.search(content)
    if match:
        return match.group(1)
    return None
