"""Exception types raised by the LoopNotes core."""

from __future__ import annotations


class LoopNotesError(Exception):
    """Base class for LoopNotes errors."""


class DecodeError(LoopNotesError, ValueError):
    """Raised when persisted or imported JSON is malformed or has the wrong shape."""


class OutOfRange(LoopNotesError, IndexError):
    """Raised when an item or note index does not address an existing entry."""


class PersistenceWriteError(LoopNotesError, OSError):
    """Raised when the backing medium cannot be written."""
