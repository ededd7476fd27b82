from __future__ import annotations

import json

import pytest

from loopnotes import cli
from loopnotes.persistence import BACKEND_ENV_VAR


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv(BACKEND_ENV_VAR, raising=False)
    path = tmp_path / "app.config.yaml"
    path.write_text(
        "storage:\n"
        f"  data-file: {tmp_path / 'loopnotes_data.json'}\n"
        "exports:\n"
        f"  directory: {tmp_path / 'exports'}\n",
        encoding="utf-8",
    )
    return path


def _run(config_path, *args: str) -> int:
    return cli.main(["--config", str(config_path), *args])


def test_show_renders_default_items(config_path, capsys) -> None:
    assert _run(config_path, "show") == 0
    out = capsys.readouterr().out
    assert "* 0: Item 1 (0 notes)" in out
    assert "Notes for Item 1:" in out


def test_commands_persist_between_runs(config_path, tmp_path, capsys) -> None:
    assert _run(config_path, "next") == 0
    assert _run(config_path, "note", "call the bank") == 0
    assert _run(config_path, "add", "Errands") == 0
    assert _run(config_path, "move", "3", "0") == 0
    capsys.readouterr()

    assert _run(config_path, "show") == 0
    out = capsys.readouterr().out
    assert "  0: Errands (0 notes)" in out
    assert "* 2: Item 2 (1 notes)" in out
    assert "call the bank" in out

    data = json.loads((tmp_path / "loopnotes_data.json").read_text(encoding="utf-8"))
    assert data["activeIndex"] == 2


def test_out_of_range_reports_error(config_path, capsys) -> None:
    assert _run(config_path, "remove", "10") == 1
    assert "Error" in capsys.readouterr().err


def test_blank_note_is_rejected(config_path, capsys) -> None:
    assert _run(config_path, "note", "   ") == 1
    assert "must not be empty" in capsys.readouterr().err


def test_export_and_import(config_path, tmp_path, capsys) -> None:
    assert _run(config_path, "edit", "0", "Renamed") == 0
    capsys.readouterr()
    assert _run(config_path, "export") == 0
    exported = capsys.readouterr().out

    export_file = tmp_path / "export.json"
    document = json.loads(exported)
    document["items"] = document["items"][:1]
    document["activeIndex"] = 5
    export_file.write_text(json.dumps(document), encoding="utf-8")

    assert _run(config_path, "import", str(export_file)) == 0
    out = capsys.readouterr().out
    assert "* 0: Renamed" in out
    assert "Item 2" not in out


def test_import_failure_keeps_data(config_path, tmp_path, capsys) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    assert _run(config_path, "import", str(bad)) == 1
    assert "Import failed" in capsys.readouterr().err
    assert _run(config_path, "show") == 0
    assert "Item 3" in capsys.readouterr().out


def test_export_to_file(config_path, tmp_path, capsys) -> None:
    assert _run(config_path, "export", "--file") == 0
    written = capsys.readouterr().out.strip()
    assert written.startswith(str(tmp_path / "exports"))


def test_key_value_backend_is_closed_after_each_run(tmp_path, monkeypatch, capsys) -> None:
    from loopnotes.persistence import KeyValueBackend

    monkeypatch.setenv(BACKEND_ENV_VAR, "kv")
    path = tmp_path / "app.config.yaml"
    path.write_text(f"storage:\n  kv-directory: {tmp_path / 'kv'}\n", encoding="utf-8")

    closed = []
    original_close = KeyValueBackend.close

    def recording_close(self) -> None:
        closed.append(self.directory)
        original_close(self)

    monkeypatch.setattr(KeyValueBackend, "close", recording_close)

    assert _run(path, "add", "Stored") == 0
    assert _run(path, "remove", "99") == 1
    assert closed == [tmp_path / "kv", tmp_path / "kv"]

    capsys.readouterr()
    assert _run(path, "show") == 0
    assert "Stored" in capsys.readouterr().out
