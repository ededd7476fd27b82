from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from loopnotes.config_loader import AppConfig
from loopnotes.main import create_app
from loopnotes.models import ListItem, Note, StoreSnapshot
from loopnotes.persistence import FileBackend
from loopnotes.store import ItemStore


class RecordingSink:
    """Synchronous persistence hook that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.snapshots: list[StoreSnapshot] = []

    def __call__(self, snapshot: StoreSnapshot) -> None:
        self.snapshots.append(snapshot)

    @property
    def last(self) -> StoreSnapshot:
        return self.snapshots[-1]


def make_items(*titles: str) -> list[ListItem]:
    return [ListItem(id=f"id-{title}", title=title) for title in titles]


def titles(store: ItemStore) -> list[str]:
    return [item.title for item in store.items]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def abc_store(sink) -> ItemStore:
    return ItemStore(make_items("A", "B", "C"), 0, persist=sink)


@pytest.fixture
def sample_snapshot() -> StoreSnapshot:
    return StoreSnapshot(
        active_index=1,
        items=[
            ListItem(id="1", title="Groceries"),
            ListItem(
                id="1700000000000",
                title="Reading",
                notes=[
                    Note(text="Chapter 4 done", timestamp=datetime(2024, 3, 2, 9, 30, 15, 123456, tzinfo=timezone.utc)),
                    Note(text="Started the book", timestamp=datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)),
                ],
            ),
        ],
    )


def _test_config(tmp_path) -> AppConfig:
    return AppConfig.model_validate(
        {
            "storage": {"backend": "file", "data-file": str(tmp_path / "loopnotes_data.json")},
            "exports": {"directory": str(tmp_path / "outputs" / "exports")},
        }
    )


async def _prepare_app(tmp_path) -> tuple[AsyncClient, FastAPI]:
    app = create_app(
        _test_config(tmp_path),
        backend=FileBackend(tmp_path / "loopnotes_data.json"),
    )
    transport = ASGITransport(app=app)
    async_client = AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0)
    async_client.app = app  # type: ignore[attr-defined]
    return async_client, app


@pytest_asyncio.fixture
async def client(tmp_path):
    async_client, app = await _prepare_app(tmp_path)
    try:
        yield async_client
    finally:
        await app.state.saver.drain()
        await async_client.aclose()
