"""Snapshot export helpers for hand-off to external sharing."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from .codec import encode_snapshot
from .models import StoreSnapshot


class SnapshotExporter:
    """Writes snapshot exports to disk."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def export(self, snapshot: StoreSnapshot) -> Path:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        safe, _ = self._timestamp()
        path = self.base_dir / f"loopnotes-{safe}.json"
        counter = 1
        while path.exists():
            path = self.base_dir / f"loopnotes-{safe}-{counter}.json"
            counter += 1
        path.write_bytes(encode_snapshot(snapshot))
        return path

    def _timestamp(self) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        safe = now.strftime("%Y%m%d-%H%M%S")
        return safe, now
