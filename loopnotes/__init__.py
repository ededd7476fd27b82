"""LoopNotes: a circular list of items with newest-first notes."""

from __future__ import annotations

from .errors import DecodeError, LoopNotesError, OutOfRange, PersistenceWriteError
from .models import ListItem, Note, StoreSnapshot
from .persistence import FileBackend, KeyValueBackend, PersistenceAdapter, create_backend
from .saver import SnapshotSaver
from .store import ItemStore

__all__ = [
    "DecodeError",
    "FileBackend",
    "ItemStore",
    "KeyValueBackend",
    "ListItem",
    "LoopNotesError",
    "Note",
    "OutOfRange",
    "PersistenceAdapter",
    "PersistenceWriteError",
    "SnapshotSaver",
    "StoreSnapshot",
    "create_backend",
]
