"""API routers for the LoopNotes command surface."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .codec import snapshot_to_dict
from .errors import DecodeError, OutOfRange
from .exporter import SnapshotExporter
from .models import StoreSnapshot
from .store import ItemStore

router = APIRouter()
logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Pydantic schemas
# --------------------------------------------------------------------------- #


class NoteModel(BaseModel):
    text: str
    timestamp: str


class ItemModel(BaseModel):
    id: str
    title: str
    notes: list[NoteModel]


class StateResponse(BaseModel):
    active_index: int = Field(alias="activeIndex")
    items: list[ItemModel]
    active_item: ItemModel | None = Field(alias="activeItem", default=None)


class TitleRequest(BaseModel):
    title: str


class NoteRequest(BaseModel):
    text: str


class ReorderRequest(BaseModel):
    old_index: int = Field(alias="oldIndex")
    new_index: int = Field(alias="newIndex")


class ExportFileResponse(BaseModel):
    path: str


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _request_state(request: Request):
    return request.app.state


def _state_response(snapshot: StoreSnapshot) -> StateResponse:
    data = snapshot_to_dict(snapshot)
    active = snapshot.active_item
    data["activeItem"] = data["items"][snapshot.active_index] if active is not None else None
    return StateResponse.model_validate(data)


def _require_text(value: str, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} must not be empty.",
        )
    return cleaned


def _apply(operation: Callable[[], StoreSnapshot]) -> StateResponse:
    try:
        snapshot = operation()
    except OutOfRange as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _state_response(snapshot)


# --------------------------------------------------------------------------- #
# Routes
# --------------------------------------------------------------------------- #


@router.get("/state", response_model=StateResponse)
async def get_state(request: Request) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _state_response(store.snapshot())


@router.post("/items/next", response_model=StateResponse)
async def cycle_next(request: Request) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _apply(store.cycle_next)


@router.post("/items/previous", response_model=StateResponse)
async def cycle_previous(request: Request) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _apply(store.cycle_previous)


@router.post("/items", response_model=StateResponse)
async def add_item(request: Request, payload: TitleRequest) -> StateResponse:
    store: ItemStore = _request_state(request).store
    title = _require_text(payload.title, "Title")
    return _apply(lambda: store.add_item(title))


@router.patch("/items/{index}", response_model=StateResponse)
async def edit_item(request: Request, index: int, payload: TitleRequest) -> StateResponse:
    store: ItemStore = _request_state(request).store
    title = _require_text(payload.title, "Title")
    return _apply(lambda: store.edit_item(index, title))


@router.delete("/items/{index}", response_model=StateResponse)
async def remove_item(request: Request, index: int) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _apply(lambda: store.remove_item(index))


@router.post("/items/reorder", response_model=StateResponse)
async def reorder_item(request: Request, payload: ReorderRequest) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _apply(lambda: store.reorder_item(payload.old_index, payload.new_index))


@router.post("/notes", response_model=StateResponse)
async def add_note(request: Request, payload: NoteRequest) -> StateResponse:
    store: ItemStore = _request_state(request).store
    text = _require_text(payload.text, "Note text")
    return _apply(lambda: store.add_note_to_active(text))


@router.delete("/notes/{index}", response_model=StateResponse)
async def delete_note(request: Request, index: int) -> StateResponse:
    store: ItemStore = _request_state(request).store
    return _apply(lambda: store.delete_note_from_active(index))


@router.get("/export")
async def export_text(request: Request) -> Response:
    store: ItemStore = _request_state(request).store
    return Response(content=store.export_text(), media_type="application/json")


@router.post("/export/file", response_model=ExportFileResponse)
async def export_file(request: Request) -> ExportFileResponse:
    state = _request_state(request)
    store: ItemStore = state.store
    exporter: SnapshotExporter = state.exporter

    path = exporter.export(store.snapshot())
    try:
        relative = path.relative_to(exporter.base_dir.parent.parent)
    except ValueError:
        relative = path.relative_to(exporter.base_dir.parent)
    return ExportFileResponse(path=str(relative))


@router.post("/import", response_model=StateResponse)
async def import_text(request: Request) -> StateResponse:
    store: ItemStore = _request_state(request).store
    body = await request.body()
    try:
        snapshot = store.import_text(body.decode("utf-8"))
    except (DecodeError, UnicodeDecodeError) as exc:
        logger.warning("Rejected import: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Import failed: the text is not a LoopNotes export.",
        ) from exc
    return _state_response(snapshot)
