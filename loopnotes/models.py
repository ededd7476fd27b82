"""Data structures shared by the store, codec and persistence layers."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone


DEFAULT_TITLES = ("Item 1", "Item 2", "Item 3")


@dataclass(slots=True)
class Note:
    """A single free-text note with its creation time."""

    text: str
    timestamp: datetime

    @classmethod
    def create(cls, text: str) -> "Note":
        return cls(text=text, timestamp=datetime.now(timezone.utc))


@dataclass(slots=True)
class ListItem:
    """A named entry in the circular list, holding notes newest-first."""

    id: str
    title: str
    notes: list[Note] = field(default_factory=list)


@dataclass(slots=True)
class StoreSnapshot:
    """Detached copy of the store state.

    This is what every store operation returns and what gets persisted.
    """

    active_index: int = 0
    items: list[ListItem] = field(default_factory=list)

    @property
    def active_item(self) -> ListItem | None:
        if not self.items or not 0 <= self.active_index < len(self.items):
            return None
        return self.items[self.active_index]

    def copy(self) -> "StoreSnapshot":
        return StoreSnapshot(active_index=self.active_index, items=copy.deepcopy(self.items))


def default_items(titles: tuple[str, ...] | list[str] = DEFAULT_TITLES) -> list[ListItem]:
    """Placeholder items used when nothing has been persisted yet."""
    return [ListItem(id=str(position), title=title) for position, title in enumerate(titles, start=1)]
