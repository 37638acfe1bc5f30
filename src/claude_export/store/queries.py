"""Collection-specific queries.

All of these are linear scans over Collection.find_all(); an export is
bounded in size, so no indexes are kept beyond the uuid key.
"""

from claude_export.models import parse_timestamp, timestamp_sort_key
from claude_export.store.collection import Collection, Record


def _name_matches(value: object, needle: str) -> bool:
    return isinstance(value, str) and needle.lower() in value.lower()


# Conversations


def find_by_name(conversations: Collection, name: str) -> list[Record]:
    """Conversations whose name contains name (case-insensitive)."""
    return [c for c in conversations.find_all() if _name_matches(c.get("name"), name)]


def find_by_account(conversations: Collection, account_uuid: str) -> list[Record]:
    return [
        c
        for c in conversations.find_all()
        if isinstance(c.get("account"), dict) and c["account"].get("uuid") == account_uuid
    ]


def find_recent(conversations: Collection, limit: int = 20) -> list[Record]:
    """Most recently updated conversations first."""
    ordered = sorted(
        conversations.find_all(),
        key=lambda c: timestamp_sort_key(c.get("updated_at")),
        reverse=True,
    )
    return ordered[:limit]


def find_unprocessed(conversations: Collection) -> list[Record]:
    return [c for c in conversations.find_all() if not c.get("processed")]


def find_processed(conversations: Collection) -> list[Record]:
    return [c for c in conversations.find_all() if c.get("processed")]


def find_by_date_range(conversations: Collection, start: str, end: str) -> list[Record]:
    """Conversations created between start and end (ISO 8601, inclusive).

    Conversations with a missing or unparseable created_at never match.
    """
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    if start_dt is None or end_dt is None:
        raise ValueError(f"Invalid date range: {start!r} - {end!r}")

    matches = []
    for conversation in conversations.find_all():
        created = parse_timestamp(conversation.get("created_at"))
        if created is not None and start_dt <= created <= end_dt:
            matches.append(conversation)
    return matches


def _message_texts(message: dict) -> list[str]:
    texts = []
    if isinstance(message.get("text"), str):
        texts.append(message["text"])
    content = message.get("content")
    if isinstance(content, list):
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str):
                texts.append(item["text"])
    return texts


def find_by_content(conversations: Collection, content: str) -> list[Record]:
    """Conversations with a message body containing content (case-insensitive)."""
    needle = content.lower()
    matches = []
    for conversation in conversations.find_all():
        messages = conversation.get("chat_messages")
        if not isinstance(messages, list):
            continue
        if any(
            needle in text.lower()
            for message in messages
            if isinstance(message, dict)
            for text in _message_texts(message)
        ):
            matches.append(conversation)
    return matches


def mark_as_processed(conversations: Collection, uuid: str, markdown_path: str) -> Record | None:
    """Record that a conversation's document was written to markdown_path."""
    return conversations.update(uuid, {"processed": True, "markdownPath": markdown_path})


# Users


def find_user_by_email(users: Collection, email: str) -> Record | None:
    for user in users.find_all():
        if user.get("email_address") == email:
            return user
    return None


def find_users_by_name(users: Collection, name: str) -> list[Record]:
    return [u for u in users.find_all() if _name_matches(u.get("full_name"), name)]


# Projects


def find_projects_by_name(projects: Collection, name: str) -> list[Record]:
    return [p for p in projects.find_all() if _name_matches(p.get("name"), name)]


def find_projects_by_creator(projects: Collection, creator_uuid: str) -> list[Record]:
    """Projects created by a user; creator may be a {uuid} reference or a bare uuid."""
    matches = []
    for project in projects.find_all():
        creator = project.get("creator")
        if isinstance(creator, dict):
            creator = creator.get("uuid")
        if creator == creator_uuid:
            matches.append(project)
    return matches


def find_recent_projects(projects: Collection, limit: int = 10) -> list[Record]:
    ordered = sorted(
        projects.find_all(),
        key=lambda p: timestamp_sort_key(p.get("updated_at")),
        reverse=True,
    )
    return ordered[:limit]
