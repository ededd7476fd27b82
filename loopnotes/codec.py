"""JSON encoding and validation of store snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import orjson
from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError, field_validator

from .errors import DecodeError
from .models import ListItem, Note, StoreSnapshot


# --------------------------------------------------------------------------- #
# Wire schema
# --------------------------------------------------------------------------- #


class NotePayload(BaseModel):
    text: StrictStr
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_iso_string(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        return datetime.fromisoformat(value)

    @field_validator("timestamp")
    @classmethod
    def _assume_local_time(cls, value: datetime) -> datetime:
        # Older snapshots carry naive local timestamps.
        if value.tzinfo is None:
            return value.astimezone()
        return value


class ItemPayload(BaseModel):
    id: StrictStr
    title: StrictStr
    notes: list[NotePayload] = Field(default_factory=list)

    @field_validator("notes", mode="before")
    @classmethod
    def _null_notes(cls, value: Any) -> Any:
        return [] if value is None else value


class SnapshotPayload(BaseModel):
    active_index: StrictInt = Field(alias="activeIndex", default=0)
    items: list[ItemPayload]

    @field_validator("active_index", mode="before")
    @classmethod
    def _null_index(cls, value: Any) -> Any:
        return 0 if value is None else value


# --------------------------------------------------------------------------- #
# Conversion
# --------------------------------------------------------------------------- #


def snapshot_to_dict(snapshot: StoreSnapshot) -> dict[str, Any]:
    return {
        "activeIndex": snapshot.active_index,
        "items": [
            {
                "id": item.id,
                "title": item.title,
                "notes": [
                    {"text": note.text, "timestamp": note.timestamp.isoformat()}
                    for note in item.notes
                ],
            }
            for item in snapshot.items
        ],
    }


def snapshot_from_payload(payload: SnapshotPayload) -> StoreSnapshot:
    return StoreSnapshot(
        active_index=payload.active_index,
        items=[
            ListItem(
                id=item.id,
                title=item.title,
                notes=[Note(text=note.text, timestamp=note.timestamp) for note in item.notes],
            )
            for item in payload.items
        ],
    )


def encode_snapshot(snapshot: StoreSnapshot, *, indent: bool = True) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else None
    return orjson.dumps(snapshot_to_dict(snapshot), option=option)


def dumps_snapshot(snapshot: StoreSnapshot, *, indent: bool = True) -> str:
    return encode_snapshot(snapshot, indent=indent).decode("utf-8")


def decode_snapshot(raw: bytes | str) -> StoreSnapshot:
    """Parse a snapshot document, raising `DecodeError` on any malformed input."""
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise DecodeError(f"Snapshot is not valid JSON: {exc}") from exc

    try:
        payload = SnapshotPayload.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Snapshot has an unexpected shape: {exc}") from exc
    return snapshot_from_payload(payload)
