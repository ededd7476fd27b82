"""In-memory item list with an active pointer.

`ItemStore` is the single source of truth for the running process. Every
mutation is applied synchronously, then a detached snapshot is handed to the
persistence hook (normally a `SnapshotSaver`) without waiting for the write.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Callable, Sequence

from .errors import DecodeError, OutOfRange
from .models import DEFAULT_TITLES, ListItem, Note, StoreSnapshot, default_items
from .persistence import PersistenceAdapter

LOGGER = logging.getLogger(__name__)

PersistHook = Callable[[StoreSnapshot], Any]


class ItemStore:
    """Circular list of items, each carrying newest-first notes."""

    def __init__(
        self,
        items: Sequence[ListItem] | None = None,
        active_index: int = 0,
        *,
        persist: PersistHook | None = None,
    ) -> None:
        self._items: list[ListItem] = copy.deepcopy(list(items or []))
        self._active_index = active_index if self._items else 0
        self._persist = persist

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def load(
        cls,
        adapter: PersistenceAdapter,
        *,
        persist: PersistHook | None = None,
        clamp_active_index: bool = False,
        default_titles: Sequence[str] = DEFAULT_TITLES,
    ) -> "ItemStore":
        """Build a store from persisted state, falling back to placeholder items."""
        try:
            snapshot = adapter.load()
        except DecodeError as exc:
            LOGGER.warning("Error decoding saved data, using defaults: %s", exc)
            snapshot = None

        if snapshot is None:
            return cls(default_items(list(default_titles)), 0, persist=persist)

        active_index = snapshot.active_index
        if clamp_active_index:
            active_index = _clamp(active_index, len(snapshot.items))
        elif snapshot.items and not 0 <= active_index < len(snapshot.items):
            LOGGER.warning(
                "Stored activeIndex %d is outside %d items; keeping it as stored",
                active_index,
                len(snapshot.items),
            )
        store = cls(snapshot.items, 0, persist=persist)
        store._active_index = active_index
        return store

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def items(self) -> list[ListItem]:
        return self.snapshot().items

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_item(self) -> ListItem | None:
        return self.snapshot().active_item

    def __len__(self) -> int:
        return len(self._items)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(active_index=self._active_index, items=list(self._items)).copy()

    # ------------------------------------------------------------------ #
    # Cycling
    # ------------------------------------------------------------------ #

    def cycle_next(self) -> StoreSnapshot:
        if not self._items:
            return self.snapshot()
        self._active_index = (self._active_index + 1) % len(self._items)
        return self._commit()

    def cycle_previous(self) -> StoreSnapshot:
        if not self._items:
            return self.snapshot()
        self._active_index = (self._active_index - 1 + len(self._items)) % len(self._items)
        return self._commit()

    # ------------------------------------------------------------------ #
    # Item management
    # ------------------------------------------------------------------ #

    def add_item(self, title: str) -> StoreSnapshot:
        self._items.append(ListItem(id=self._new_id(), title=title))
        if len(self._items) == 1:
            self._active_index = 0
        return self._commit()

    def remove_item(self, index: int) -> StoreSnapshot:
        self._check_item_index(index)
        del self._items[index]
        # Reset whenever the pointer falls off the end, even if another item was removed.
        if self._active_index >= len(self._items):
            self._active_index = 0
        return self._commit()

    def edit_item(self, index: int, title: str) -> StoreSnapshot:
        self._check_item_index(index)
        self._items[index].title = title
        return self._commit()

    def reorder_item(self, old_index: int, new_index: int) -> StoreSnapshot:
        """Move the item at `old_index` to the insertion slot `new_index`.

        `new_index` is counted against the list before the item is taken out,
        so it may equal `len(items)` to mean "after the last item".
        """

        self._check_item_index(old_index)
        if not 0 <= new_index <= len(self._items):
            raise OutOfRange(f"Insertion slot {new_index} is outside 0..{len(self._items)}")

        if new_index > old_index:
            new_index -= 1
        item = self._items.pop(old_index)
        self._items.insert(new_index, item)

        active = self._active_index
        if active == old_index:
            self._active_index = new_index
        elif old_index < active <= new_index:
            self._active_index = active - 1
        elif new_index <= active < old_index:
            self._active_index = active + 1
        return self._commit()

    # ------------------------------------------------------------------ #
    # Notes
    # ------------------------------------------------------------------ #

    def add_note_to_active(self, text: str) -> StoreSnapshot:
        if not self._items:
            return self.snapshot()
        self._active().notes.insert(0, Note.create(text))
        return self._commit()

    def delete_note_from_active(self, note_index: int) -> StoreSnapshot:
        if not self._items:
            raise OutOfRange("There is no active item to delete a note from")
        notes = self._active().notes
        if not 0 <= note_index < len(notes):
            raise OutOfRange(f"Note index {note_index} is outside 0..{len(notes) - 1}")
        del notes[note_index]
        return self._commit()

    # ------------------------------------------------------------------ #
    # Import / export
    # ------------------------------------------------------------------ #

    def export_text(self) -> str:
        return PersistenceAdapter.export_text(self.snapshot())

    def import_text(self, text: str) -> StoreSnapshot:
        """Replace the whole store with an exported document.

        Raises `DecodeError` and leaves the store untouched when `text` is not
        a valid snapshot. The imported active index is clamped into range.
        """

        imported = PersistenceAdapter.import_text(text)
        self._items = imported.items
        self._active_index = _clamp(imported.active_index, len(imported.items))
        LOGGER.info("Imported %d items", len(self._items))
        return self._commit()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _commit(self) -> StoreSnapshot:
        snapshot = self.snapshot()
        if self._persist is not None:
            self._persist(snapshot.copy())
        return snapshot

    def _active(self) -> ListItem:
        # Only reachable out of range when an unclamped load kept a bad index.
        if not 0 <= self._active_index < len(self._items):
            raise OutOfRange(f"Active index {self._active_index} does not address an item")
        return self._items[self._active_index]

    def _check_item_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise OutOfRange(f"Item index {index} is outside 0..{len(self._items) - 1}")

    def _new_id(self) -> str:
        taken = {item.id for item in self._items}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)


def _clamp(active_index: int, length: int) -> int:
    if length == 0 or not 0 <= active_index < length:
        return 0
    return active_index
