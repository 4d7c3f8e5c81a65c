"""Tests for the local JSON capture cache."""

import json
from pathlib import Path

from capture_inbox.models.capture import Capture, Category
from capture_inbox.store.local import LocalCache


def test_missing_file_loads_empty(tmp_path: Path):
    assert LocalCache(tmp_path / "captures.json").load() == []


def test_save_then_load(tmp_path: Path):
    cache = LocalCache(tmp_path / "nested" / "captures.json")
    captures = [
        Capture(raw_content="second", category=Category.TASKS),
        Capture(raw_content="first", tags=["x"]),
    ]

    cache.save(captures)

    assert cache.load() == captures
    assert not (tmp_path / "nested" / "captures.json.tmp").exists()


def test_corrupt_file_is_quarantined(tmp_path: Path, caplog):
    """Undecodable cache: empty collection, error logged, file moved aside."""
    path = tmp_path / "captures.json"
    path.write_text("{not json", encoding="utf-8")

    captures = LocalCache(path).load()

    assert captures == []
    assert not path.exists()
    assert (tmp_path / "captures.json.corrupt").read_text(encoding="utf-8") == "{not json"
    assert any(r.levelname == "ERROR" for r in caplog.records)


def test_non_list_payload_is_corrupt(tmp_path: Path):
    path = tmp_path / "captures.json"
    path.write_text(json.dumps({"captures": []}), encoding="utf-8")

    assert LocalCache(path).load() == []
    assert (tmp_path / "captures.json.corrupt").exists()


def test_bad_rows_are_skipped(tmp_path: Path):
    path = tmp_path / "captures.json"
    good = Capture(raw_content="keep me").model_dump(mode="json")
    path.write_text(json.dumps([good, {"category": "nonsense"}, 5]), encoding="utf-8")

    captures = LocalCache(path).load()

    assert [c.raw_content for c in captures] == ["keep me"]
    assert path.exists()


def test_save_failure_is_logged_not_raised(tmp_path: Path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    cache = LocalCache(blocker / "captures.json")

    cache.save([Capture(raw_content="x")])

    assert any("Failed to write capture cache" in r.getMessage() for r in caplog.records)
