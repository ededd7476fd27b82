"""Fire-and-forget snapshot writer."""

from __future__ import annotations

import asyncio
import logging
from threading import Lock

from .errors import PersistenceWriteError
from .models import StoreSnapshot
from .persistence import PersistenceAdapter

LOGGER = logging.getLogger(__name__)


class SnapshotSaver:
    """Schedules snapshot writes without blocking the caller.

    Inside a running event loop each write runs on a worker thread and is not
    awaited. Outside a loop the write happens inline. Every write carries a
    generation number so an older snapshot never replaces a newer one on disk.
    Write failures are logged and dropped.
    """

    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter
        self._generation = 0
        self._written_generation = 0
        self._write_lock = Lock()
        self._pending: set[asyncio.Task] = set()

    def __call__(self, snapshot: StoreSnapshot) -> asyncio.Task | None:
        return self.schedule(snapshot)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def schedule(self, snapshot: StoreSnapshot) -> asyncio.Task | None:
        self._generation += 1
        generation = self._generation
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(generation, snapshot)
            return None

        task = loop.create_task(asyncio.to_thread(self._write, generation, snapshot))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _write(self, generation: int, snapshot: StoreSnapshot) -> bool:
        with self._write_lock:
            if generation <= self._written_generation:
                LOGGER.debug("Skipping stale snapshot write (generation %d)", generation)
                return False
            try:
                self.adapter.save(snapshot)
            except PersistenceWriteError as exc:
                LOGGER.warning("Snapshot write failed, keeping in-memory state: %s", exc)
                return False
            except Exception as exc:  # noqa: BLE001 - log and continue
                LOGGER.exception("Unexpected error while writing snapshot: %s", exc)
                return False
            self._written_generation = generation
            return True
