"""Shared fixtures: sample export records and export zip builders."""

import json
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def sample_conversations() -> list[dict]:
    """Two small conversations in export format."""
    return [
        {
            "uuid": "conv-older",
            "name": "Older Chat",
            "created_at": "2025-01-01T10:00:00Z",
            "updated_at": "2025-01-01T10:30:00Z",
            "account": {"uuid": "account-1"},
            "chat_messages": [
                {
                    "uuid": "msg-1",
                    "text": "Hello, Claude!",
                    "sender": "human",
                    "created_at": "2025-01-01T10:00:00Z",
                },
                {
                    "uuid": "msg-2",
                    "text": "Hello! How can I help you today?",
                    "sender": "assistant",
                    "created_at": "2025-01-01T10:00:05Z",
                },
            ],
        },
        {
            "uuid": "conv-newer",
            "name": "Newer Chat",
            "created_at": "2025-02-01T09:00:00Z",
            "updated_at": "2025-02-01T09:15:00Z",
            "account": {"uuid": "account-1"},
            "chat_messages": [
                {
                    "uuid": "msg-3",
                    "text": "Show me a Python loop",
                    "sender": "human",
                    "created_at": "2025-02-01T09:00:00Z",
                },
            ],
        },
    ]


@pytest.fixture
def sample_users() -> list[dict]:
    """One user in export format."""
    return [{"uuid": "account-1", "full_name": "Ada Lovelace", "email_address": "ada@example.com"}]


@pytest.fixture
def sample_projects() -> list[dict]:
    """One project whose creator references the sample user."""
    return [
        {
            "uuid": "project-1",
            "name": "Analytical Engine",
            "description": "Notes",
            "created_at": "2025-01-01T00:00:00Z",
            "updated_at": "2025-01-02T00:00:00Z",
            "creator": {"uuid": "account-1"},
        }
    ]


@pytest.fixture
def make_export(tmp_path: Path) -> Callable[..., Path]:
    """Build an export zip from a mapping of entry name to JSON data or raw text."""
    counter = {"n": 0}

    def _make(entries: dict[str, object], name: str | None = None) -> Path:
        counter["n"] += 1
        zip_path = tmp_path / (name or f"export-{counter['n']}.zip")
        with zipfile.ZipFile(zip_path, "w") as zf:
            for entry_name, data in entries.items():
                payload = data if isinstance(data, str) else json.dumps(data)
                zf.writestr(entry_name, payload)
        return zip_path

    return _make
