"""Process Claude chat exports into a local record store and Markdown files."""

__version__ = "0.1.0"
