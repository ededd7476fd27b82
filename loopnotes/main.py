"""FastAPI entry point for the LoopNotes service."""

from __future__ import annotations

import logging
from typing import Mapping

from fastapi import FastAPI

from . import routes
from .config_loader import PROJECT_ROOT, AppConfig, load_app_config, resolve_path
from .exporter import SnapshotExporter
from .persistence import PersistenceAdapter, SnapshotBackend, create_backend
from .saver import SnapshotSaver
from .store import ItemStore

LOGGER = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    *,
    backend: SnapshotBackend | None = None,
    environ: Mapping[str, str] | None = None,
) -> FastAPI:
    app = FastAPI(
        title="LoopNotes",
        description="Cycle through a circular list of items and keep notes on each.",
        version="0.1.0",
    )

    app_config = config or load_app_config()
    storage_backend = backend or create_backend(app_config.storage, environ=environ, root=PROJECT_ROOT)
    adapter = PersistenceAdapter(storage_backend)
    saver = SnapshotSaver(adapter)
    store = ItemStore.load(
        adapter,
        persist=saver,
        clamp_active_index=app_config.storage.clamp_on_load,
        default_titles=app_config.defaults.titles,
    )
    LOGGER.info("Loaded %d items (active index %d)", len(store), store.active_index)

    app.state.app_config = app_config
    app.state.adapter = adapter
    app.state.saver = saver
    app.state.store = store
    app.state.exporter = SnapshotExporter(resolve_path(app_config.exports.directory, PROJECT_ROOT))

    app.include_router(routes.router)

    @app.on_event("shutdown")
    async def flush_pending_writes() -> None:  # pragma: no cover - shutdown hook
        await saver.drain()
        adapter.close()

    return app
