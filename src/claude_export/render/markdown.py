"""Markdown rendering of a single conversation."""

import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

from claude_export.errors import RenderError
from claude_export.logging import get_logger
from claude_export.models import (
    Attachment,
    ContentItem,
    Message,
    TextItem,
    ToolResultItem,
    ToolUseItem,
    parse_timestamp,
)
from claude_export.render.files import conversation_url, format_file_size
from claude_export.render.text import (
    clean_rtl_text,
    decode_unicode_escapes,
    is_rtl,
    normalize_code_blocks,
    wrap_rtl,
)

logger = get_logger("render")

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
TITLE_MAX_LENGTH = 50
TOOL_ERROR_NOTE = "> ⚠️ This tool use resulted in an error."


def format_timestamp(value: str | None) -> str:
    """Format an ISO timestamp as YYYY-MM-DD HH:MM:SS (UTC if offset-aware).

    Unparseable values are returned as-is; missing values as "".
    """
    if not value:
        return ""
    dt = parse_timestamp(value)
    if dt is None:
        return str(value)
    return dt.strftime(DISPLAY_FORMAT)


def to_json_block(value: Any) -> str:
    return "```json\n" + json.dumps(value, indent=2, ensure_ascii=False, default=str) + "\n```\n\n"


class MarkdownRenderer:
    """Renders conversation records as Markdown documents.

    Output is deterministic for a given record apart from the "Generated at"
    footer line, whose clock can be injected for tests.
    """

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        """Create a renderer.

        Args:
            now: Clock used for the footer timestamp (defaults to datetime.now)
        """
        self._now = now or datetime.now

    def render(self, conversation: dict) -> str:
        """Render a conversation.

        Args:
            conversation: Conversation record as stored

        Returns:
            The Markdown document

        Raises:
            RenderError: If anything in the record cannot be rendered
        """
        uuid = conversation.get("uuid") if isinstance(conversation, dict) else None
        logger.debug("Generating markdown for conversation: uuid=%s", uuid)

        try:
            parts = [f"# {self.title(conversation)}\n\n", self.metadata(conversation)]

            messages = conversation.get("chat_messages")
            if isinstance(messages, list):
                for raw_message in messages:
                    if isinstance(raw_message, dict):
                        parts.append(self.message(Message.from_dict(raw_message)))

            parts.append("\n\n---\n\n")
            parts.append(f"Generated at: {self._now().strftime(DISPLAY_FORMAT)}\n")
            parts.append(f"Original conversation: {conversation_url(uuid)}\n")
            return "".join(parts)
        except Exception as e:
            logger.exception("Failed to generate markdown for conversation: uuid=%s", uuid)
            raise RenderError(uuid, str(e)) from e

    def title(self, conversation: dict) -> str:
        """Conversation name, else first line of the first message, else uuid."""
        name = conversation.get("name")
        if isinstance(name, str) and name.strip():
            return name

        messages = conversation.get("chat_messages")
        if isinstance(messages, list) and messages and isinstance(messages[0], dict):
            text = messages[0].get("text")
            if isinstance(text, str) and text.strip():
                first_line = text.split("\n")[0].strip()
                if len(first_line) > TITLE_MAX_LENGTH:
                    return f"{first_line[:TITLE_MAX_LENGTH]}..."
                return first_line

        return f"Conversation {conversation.get('uuid')}"

    def metadata(self, conversation: dict) -> str:
        """Metadata section; empty when no metadata fields are present."""
        lines = []
        if conversation.get("created_at"):
            lines.append(f"- **Created at**: {format_timestamp(conversation['created_at'])}\n")
        if conversation.get("updated_at"):
            lines.append(f"- **Last updated**: {format_timestamp(conversation['updated_at'])}\n")

        account = conversation.get("account")
        if isinstance(account, dict) and account.get("uuid"):
            lines.append(f"- **Account UUID**: {account['uuid']}\n")

        if not lines:
            return ""
        return "## Metadata\n\n" + "".join(lines) + "\n\n---\n\n"

    def message(self, message: Message) -> str:
        """Header, body and attachments for one message."""
        parts = [f"\n\n## {message.sender_label} ({format_timestamp(message.created_at)})\n\n"]

        if message.text:
            parts.append(self.text(message.text))
        else:
            for item in message.content:
                parts.append(self.content_item(item))

        if message.attachments:
            parts.append("\n\n### Attachments\n\n")
            for attachment in message.attachments:
                parts.append(self.attachment(attachment))

        return "".join(parts)

    def text(self, text: str) -> str:
        body = normalize_code_blocks(text)
        if is_rtl(text):
            return wrap_rtl(body)
        return body

    def content_item(self, item: ContentItem) -> str:
        if isinstance(item, TextItem):
            return self.text(item.text) if item.text else ""
        if isinstance(item, ToolUseItem):
            return self.tool_use(item)
        if isinstance(item, ToolResultItem):
            return self.tool_result(item)
        return ""

    def tool_use(self, item: ToolUseItem) -> str:
        markdown = f"\n\n### Tool Use: {item.name}\n\n"
        if item.input:
            markdown += to_json_block(item.input)
        return markdown

    def tool_result(self, item: ToolResultItem) -> str:
        markdown = f"\n\n### Tool Result: {item.name}\n\n"
        if item.content:
            if isinstance(item.content, str):
                markdown += f"```\n{item.content}\n```\n\n"
            else:
                markdown += to_json_block(item.content)
        if item.is_error:
            markdown += f"{TOOL_ERROR_NOTE}\n\n"
        return markdown

    def attachment(self, attachment: Attachment) -> str:
        markdown = (
            f"- **{attachment.file_name}** "
            f"({attachment.file_type}, {format_file_size(attachment.file_size)})\n"
        )

        content = attachment.extracted_content
        if not content:
            return markdown

        if is_rtl(content):
            cleaned = clean_rtl_text(decode_unicode_escapes(content))
            markdown += f'\n<div dir="rtl">\n\n```\n{cleaned}\n```\n\n</div>\n'
        else:
            markdown += f"\n```\n{content}\n```\n\n"
        return markdown
