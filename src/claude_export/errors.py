"""Errors raised while processing an export."""

from typing import Optional


class ExportError(Exception):
    """Base error for export processing."""
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ArchiveError(ExportError):
    """The export container is missing, unreadable or corrupt."""
    pass


class MissingRequiredFileError(ArchiveError):
    """A required entry (conversations.json) is absent from the archive."""
    def __init__(self, filename: str):
        super().__init__(f"Missing {filename} file in the zip archive", code="missing_file")
        self.filename = filename


class ParseError(ExportError):
    """Malformed JSON in an export file."""
    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message, code="parse")
        self.offset = offset


class StorageIOError(ExportError):
    """Filesystem failure while reading or writing."""
    pass


class RenderError(ExportError):
    """A single conversation could not be rendered."""
    def __init__(self, uuid: Optional[str], message: str):
        super().__init__(f"Failed to render conversation {uuid}: {message}", code="render")
        self.uuid = uuid


class InvalidRecordError(ExportError):
    """A record lacks a required key such as uuid."""
    pass


class PipelineCancelled(ExportError):
    """Shutdown was requested between pipeline stages."""
    pass
