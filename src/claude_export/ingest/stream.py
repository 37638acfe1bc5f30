"""Incremental JSON array parsing.

conversations.json in a large export runs to hundreds of megabytes, so it is
decoded one element at a time with ijson instead of json.load. The small
users/projects files are parsed directly.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any

import ijson

from claude_export.errors import ParseError, StorageIOError
from claude_export.logging import get_logger

logger = get_logger("stream")

PROGRESS_EVERY = 100


def _stream_offset(stream: IO[bytes]) -> int | None:
    try:
        return stream.tell()
    except (OSError, ValueError, AttributeError):
        return None


def iter_records(
    stream: IO[bytes],
    label: str = "records",
    progress_every: int = PROGRESS_EVERY,
) -> Iterator[Any]:
    """Yield each element of a top-level JSON array as it is decoded.

    The iterator is single pass: iterating again requires reopening the
    stream.

    Args:
        stream: Binary stream positioned at the start of the document
        label: Noun used in progress log lines
        progress_every: Emit a debug progress line every N records

    Yields:
        Decoded array elements

    Raises:
        ParseError: If the document is malformed or not an array
        StorageIOError: If reading the stream fails
    """
    count = 0
    try:
        events = ijson.parse(stream, use_float=True)
        _, event, _ = next(events)
        if event != "start_array":
            raise ParseError(f"Error parsing JSON: expected a top-level array, found {event}")

        for record in ijson.items(events, "item"):
            count += 1
            if progress_every and count % progress_every == 0:
                logger.debug("Processed %d %s so far...", count, label)
            yield record
    except StopIteration:
        raise ParseError("Error parsing JSON: empty document", _stream_offset(stream))
    except ijson.JSONError as e:
        raise ParseError(f"Error parsing JSON: {e}", _stream_offset(stream)) from e
    except OSError as e:
        raise StorageIOError(f"Error reading file: {e}") from e

    logger.debug("Completed processing %d %s", count, label)


def iter_json_array(
    path: Path,
    label: str = "records",
    progress_every: int = PROGRESS_EVERY,
) -> Iterator[Any]:
    """Stream the elements of a JSON array stored in a file.

    Args:
        path: Path to the JSON file
        label: Noun used in progress log lines
        progress_every: Emit a debug progress line every N records

    Yields:
        Decoded array elements
    """
    logger.debug("Processing JSON stream: path=%s", path)
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise StorageIOError(f"Error reading file: {path}: {e}") from e

    with stream:
        yield from iter_records(stream, label=label, progress_every=progress_every)


def load_json_array(path: Path) -> list[Any]:
    """Parse a small JSON array file in one go.

    Missing files, malformed JSON and non-array documents all produce an
    empty list; optional export files must never abort a run.

    Args:
        path: Path to the JSON file

    Returns:
        The parsed list, or [] if the content is not a well-formed array
    """
    logger.debug("Processing JSON file: path=%s", path)
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Failed to process JSON file: path=%s", path, exc_info=True)
        return []

    if not isinstance(content, list):
        logger.warning("Expected a JSON array, ignoring file: path=%s", path)
        return []
    return content
