"""Command-line access to the LoopNotes store."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config_loader import PROJECT_ROOT, AppConfig, load_app_config, resolve_path
from .errors import DecodeError, OutOfRange
from .exporter import SnapshotExporter
from .models import StoreSnapshot
from .persistence import PersistenceAdapter, create_backend
from .saver import SnapshotSaver
from .store import ItemStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loopnotes",
        description="Cycle through items and keep newest-first notes on each.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to app.config.yaml (default: data/app.config.yaml).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="Show the item list and the active item's notes.")
    commands.add_parser("next", help="Make the next item active.")
    commands.add_parser("previous", help="Make the previous item active.")

    add = commands.add_parser("add", help="Append a new item.")
    add.add_argument("title")

    edit = commands.add_parser("edit", help="Rename an item.")
    edit.add_argument("index", type=int)
    edit.add_argument("title")

    remove = commands.add_parser("remove", help="Remove an item.")
    remove.add_argument("index", type=int)

    move = commands.add_parser("move", help="Move an item to another position.")
    move.add_argument("old_index", type=int)
    move.add_argument("new_index", type=int, help="Insertion slot counted before the move.")

    note = commands.add_parser("note", help="Add a note to the active item.")
    note.add_argument("text")

    delete_note = commands.add_parser("delete-note", help="Delete a note from the active item.")
    delete_note.add_argument("index", type=int)

    export = commands.add_parser("export", help="Print the export document.")
    export.add_argument(
        "--file",
        action="store_true",
        help="Write the export to the exports directory instead of stdout.",
    )

    import_ = commands.add_parser("import", help="Replace all data with an export document.")
    import_.add_argument("path", type=Path, help="Export file to read, or '-' for stdin.")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )


def render(snapshot: StoreSnapshot) -> str:
    if not snapshot.items:
        return "No items available. Add one with `loopnotes add TITLE`."
    lines = []
    for index, item in enumerate(snapshot.items):
        marker = "*" if index == snapshot.active_index else " "
        lines.append(f"{marker} {index}: {item.title} ({len(item.notes)} notes)")
    active = snapshot.active_item
    if active is not None:
        lines.append("")
        lines.append(f"Notes for {active.title}:")
        if not active.notes:
            lines.append("  (none)")
        for index, note in enumerate(active.notes):
            stamp = note.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
            lines.append(f"  {index}: [{stamp}] {note.text}")
    return "\n".join(lines)


def _clean(value: str, label: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{label} must not be empty.")
    return cleaned


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    app_config = load_app_config(args.config)
    adapter = PersistenceAdapter(create_backend(app_config.storage, root=PROJECT_ROOT))
    store = ItemStore.load(
        adapter,
        persist=SnapshotSaver(adapter),
        clamp_active_index=app_config.storage.clamp_on_load,
        default_titles=app_config.defaults.titles,
    )

    try:
        return _run_command(args, app_config, store)
    finally:
        adapter.close()


def _run_command(args: argparse.Namespace, app_config: AppConfig, store: ItemStore) -> int:
    try:
        if args.command == "show":
            snapshot = store.snapshot()
        elif args.command == "next":
            snapshot = store.cycle_next()
        elif args.command == "previous":
            snapshot = store.cycle_previous()
        elif args.command == "add":
            snapshot = store.add_item(_clean(args.title, "Title"))
        elif args.command == "edit":
            snapshot = store.edit_item(args.index, _clean(args.title, "Title"))
        elif args.command == "remove":
            snapshot = store.remove_item(args.index)
        elif args.command == "move":
            snapshot = store.reorder_item(args.old_index, args.new_index)
        elif args.command == "note":
            snapshot = store.add_note_to_active(_clean(args.text, "Note text"))
        elif args.command == "delete-note":
            snapshot = store.delete_note_from_active(args.index)
        elif args.command == "export":
            if args.file:
                exporter = SnapshotExporter(resolve_path(app_config.exports.directory, PROJECT_ROOT))
                print(exporter.export(store.snapshot()))
            else:
                print(store.export_text())
            return 0
        else:  # import
            text = sys.stdin.read() if str(args.path) == "-" else args.path.read_text(encoding="utf-8")
            snapshot = store.import_text(text)
    except (OutOfRange, ValueError, OSError) as exc:
        # DecodeError is a ValueError.
        kind = "Import failed" if isinstance(exc, DecodeError) else "Error"
        print(f"{kind}: {exc}", file=sys.stderr)
        return 1

    print(render(snapshot))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
