"""Persistent record store."""

from .collection import Collection, Record, uuid_key
from .database import SCHEMA_VERSION, RecordStore

__all__ = ["Collection", "Record", "RecordStore", "SCHEMA_VERSION", "uuid_key"]
