"""Reading export archives and streaming their JSON collections."""

from .archive import ExportData, extract_all, extract_entry, find_entry, open_archive, read_export
from .stream import iter_json_array, iter_records, load_json_array

__all__ = [
    "ExportData",
    "extract_all",
    "extract_entry",
    "find_entry",
    "iter_json_array",
    "iter_records",
    "load_json_array",
    "open_archive",
    "read_export",
]
