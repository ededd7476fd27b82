"""Backing media for store snapshots.

Two backends implement the same small protocol: a JSON file at a fixed path
and a `diskcache` key-value store under a fixed key. Which one is used is
decided once per process by `create_backend`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

from diskcache import Cache

from .codec import decode_snapshot, dumps_snapshot, encode_snapshot
from .config_loader import StorageConfig, resolve_path
from .errors import PersistenceWriteError
from .models import StoreSnapshot

LOGGER = logging.getLogger(__name__)

BACKEND_ENV_VAR = "LOOPNOTES_STORAGE_BACKEND"
DEFAULT_KV_KEY = "loopnotes_data"


class SnapshotBackend(Protocol):
    """Protocol for snapshot storage media."""

    def read(self) -> bytes | None: ...

    def write(self, payload: bytes) -> None: ...

    def close(self) -> None: ...


class FileBackend:
    """Stores the snapshot as a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> bytes | None:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def write(self, payload: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(self.path)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"FileBackend({str(self.path)!r})"


class KeyValueBackend:
    """Stores the snapshot under a single key of a disk-backed key-value store."""

    def __init__(self, directory: Path, key: str = DEFAULT_KV_KEY) -> None:
        self.directory = directory
        self.key = key
        self._cache: Optional[Cache] = None

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = Cache(str(self.directory))
        return self._cache

    def read(self) -> bytes | None:
        value = self.cache.get(self.key)
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def write(self, payload: bytes) -> None:
        self.cache.set(self.key, payload.decode("utf-8"), retry=True)

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def __repr__(self) -> str:
        return f"KeyValueBackend({str(self.directory)!r}, key={self.key!r})"


def create_backend(
    storage: StorageConfig,
    *,
    environ: Mapping[str, str] | None = None,
    root: Path | None = None,
) -> SnapshotBackend:
    """Select the storage backend for this process.

    The `LOOPNOTES_STORAGE_BACKEND` environment variable overrides the
    configured `storage.backend`.
    """

    env = os.environ if environ is None else environ
    choice = (env.get(BACKEND_ENV_VAR) or storage.backend).strip().lower()

    if choice == "file":
        backend: SnapshotBackend = FileBackend(resolve_path(storage.data_file, root))
    elif choice in {"kv", "key-value"}:
        backend = KeyValueBackend(resolve_path(storage.kv_directory, root), key=storage.kv_key)
    else:
        raise ValueError(f"Unknown storage backend: {choice!r}")

    LOGGER.info("Using %r for snapshot storage", backend)
    return backend


class PersistenceAdapter:
    """Reads and writes whole store snapshots through a backend."""

    def __init__(self, backend: SnapshotBackend) -> None:
        self.backend = backend

    def save(self, snapshot: StoreSnapshot) -> None:
        payload = encode_snapshot(snapshot)
        try:
            self.backend.write(payload)
        except Exception as exc:  # noqa: BLE001 - backends raise OSError or diskcache errors
            raise PersistenceWriteError(f"Could not write snapshot to {self.backend!r}: {exc}") from exc
        LOGGER.debug("Saved snapshot with %d items to %r", len(snapshot.items), self.backend)

    def load(self) -> StoreSnapshot | None:
        """Return the persisted snapshot, or None when nothing is stored.

        Raises `DecodeError` when the stored document is malformed. The
        active index is returned exactly as stored.
        """

        try:
            raw = self.backend.read()
        except OSError as exc:
            LOGGER.warning("Error loading snapshot from %r: %s", self.backend, exc)
            return None
        if raw is None or not raw.strip():
            return None
        return decode_snapshot(raw)

    @staticmethod
    def export_text(snapshot: StoreSnapshot) -> str:
        """Serialize a snapshot for hand-off to an external share mechanism."""
        return dumps_snapshot(snapshot)

    @staticmethod
    def import_text(text: str) -> StoreSnapshot:
        """Parse exported text, raising `DecodeError` when it is not a snapshot."""
        return decode_snapshot(text)

    def close(self) -> None:
        self.backend.close()
