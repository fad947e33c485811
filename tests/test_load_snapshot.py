from datetime import date
from pathlib import Path

from project_analytics.core.errors import SnapshotLoadError
from project_analytics.core.io.load_snapshot import load_snapshot

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_load_yaml_success():
    snap = load_snapshot(str(EXAMPLES / "basic-project.yaml"))
    assert snap["project"]["id"] == "PRJ-001"
    assert isinstance(snap["phases"], list)
    assert len(snap["phases"]) == 5
    # YAML parses ISO dates natively.
    assert snap["project"]["planned_start_date"] == date(2026, 1, 1)
    assert snap["__file__"].endswith("basic-project.yaml")


def test_load_json_success():
    snap = load_snapshot(str(EXAMPLES / "linear-chain.json"))
    assert snap["project"]["id"] == "PRJ-LINEAR"
    assert snap["cost_items"] == []
    assert snap["resource_assignments"] == []


def test_load_missing_file():
    try:
        load_snapshot(str(EXAMPLES / "does-not-exist.yaml"))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "snapshot.txt"
    p.write_text("hello", encoding="utf-8")
    try:
        load_snapshot(str(p))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_json(tmp_path):
    p = tmp_path / "snapshot.json"
    p.write_text("{not json", encoding="utf-8")
    try:
        load_snapshot(str(p))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_JSON_PARSE"
        assert str(p) in str(e)


def test_load_bad_yaml(tmp_path):
    p = tmp_path / "snapshot.yaml"
    p.write_text("project: [unclosed\n", encoding="utf-8")
    try:
        load_snapshot(str(p))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_YAML_PARSE"


def test_load_top_level_must_be_mapping(tmp_path):
    p = tmp_path / "snapshot.yaml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    try:
        load_snapshot(str(p))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_INVALID_TOP_LEVEL"


def test_load_file_that_is_not_utf8(tmp_path):
    p = tmp_path / "snapshot.yaml"
    p.write_bytes(b"\xff\xfe")
    try:
        load_snapshot(str(p))
        assert False, "expected SnapshotLoadError"
    except SnapshotLoadError as e:
        assert e.code == "E_FILE_READ"
        assert e.file == str(p)
