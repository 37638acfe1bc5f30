"""Rendering conversations as Markdown documents."""

from .files import build_filename, extract_conversation_uuid, format_file_size, slugify
from .markdown import MarkdownRenderer, format_timestamp
from .text import clean_rtl_text, detect_direction, normalize_code_blocks, wrap_rtl

__all__ = [
    "MarkdownRenderer",
    "build_filename",
    "clean_rtl_text",
    "detect_direction",
    "extract_conversation_uuid",
    "format_file_size",
    "format_timestamp",
    "normalize_code_blocks",
    "slugify",
    "wrap_rtl",
]
