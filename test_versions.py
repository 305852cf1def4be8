"""Tests for the metadata document: model, load/save, find/add/remove."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from shadow.errors import ParseError
from shadow.versions import LIST_FILE, FileEntry, Version, VersionList, load_list, save_list

T0 = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_version(version_id, minutes=0, **kwargs):
    fields = {"tags": ("t",), "notes": "n", "size": 5, "hash": "a" * 64}
    fields.update(kwargs)
    return Version(id=version_id, created_at=T0 + timedelta(minutes=minutes), **fields)


# ── add / find ────────────────────────────────────────────────────────────────

def test_add_version_new_file():
    vl = VersionList()
    vl.add_version("/a/f.txt", make_version("00000001"))
    entry = vl.find("/a/f.txt")
    assert entry is not None
    assert [v.id for v in entry.versions] == ["00000001"]


def test_add_version_puts_newest_first():
    vl = VersionList()
    vl.add_version("/a/f.txt", make_version("00000001"))
    vl.add_version("/a/f.txt", make_version("00000002", minutes=1))
    vl.add_version("/a/f.txt", make_version("00000003", minutes=-60))
    # Insertion order, not timestamp order.
    assert [v.id for v in vl.find("/a/f.txt").versions] == ["00000003", "00000002", "00000001"]


def test_entries_keep_first_added_order():
    vl = VersionList()
    vl.add_version("/b", make_version("00000001"))
    vl.add_version("/a", make_version("00000002"))
    vl.add_version("/b", make_version("00000003"))
    assert [e.path for e in vl] == ["/b", "/a"]


def test_find_is_exact_match():
    vl = VersionList()
    vl.add_version("/a/F.txt", make_version("00000001"))
    assert vl.find("/a/f.txt") is None
    assert vl.find("/a/F.txt/") is None


def test_duplicate_ids_are_kept():
    vl = VersionList()
    vl.add_version("/a", make_version("deadbeef"))
    vl.add_version("/a", make_version("deadbeef", minutes=5))
    assert [v.id for v in vl.find("/a").versions] == ["deadbeef", "deadbeef"]
    assert vl.find("/a").get("deadbeef").created_at == T0 + timedelta(minutes=5)


def test_version_tags_are_stored_as_tuple():
    v = Version(id="00000001", created_at=T0, tags=["x", "y"])
    assert v.tags == ("x", "y")
    with pytest.raises(AttributeError):
        v.notes = "changed"


def test_file_entry_total_size():
    entry = FileEntry("/a")
    entry.versions.extend([make_version("1", size=3), make_version("2", size=4)])
    assert entry.total_size == 7


# ── remove ────────────────────────────────────────────────────────────────────

def test_remove_version():
    vl = VersionList()
    vl.add_version("/a", make_version("00000001"))
    vl.add_version("/a", make_version("00000002"))
    assert vl.remove_version("/a", "00000001") is True
    assert [v.id for v in vl.find("/a").versions] == ["00000002"]


def test_remove_last_version_removes_entry():
    vl = VersionList()
    vl.add_version("/a", make_version("00000001"))
    assert vl.remove_version("/a", "00000001") is True
    assert vl.find("/a") is None
    assert len(vl) == 0


def test_remove_duplicate_id_removes_only_newest():
    vl = VersionList()
    vl.add_version("/a", make_version("deadbeef"))
    vl.add_version("/a", make_version("deadbeef", minutes=5))
    assert vl.remove_version("/a", "deadbeef") is True
    remaining = list(vl.find("/a").versions)
    assert len(remaining) == 1
    assert remaining[0].created_at == T0


def test_remove_unknown_path_or_id_leaves_document_unchanged(tmp_path):
    vl = VersionList()
    vl.add_version("/a", make_version("00000001"))
    save_list(tmp_path, vl)
    before = (tmp_path / LIST_FILE).read_bytes()

    assert vl.remove_version("/missing", "00000001") is False
    assert vl.remove_version("/a", "ffffffff") is False

    save_list(tmp_path, vl)
    assert (tmp_path / LIST_FILE).read_bytes() == before


# ── load / save ───────────────────────────────────────────────────────────────

def test_load_missing_document_is_empty(tmp_path):
    vl = load_list(tmp_path / "never-created")
    assert len(vl) == 0


def test_round_trip(tmp_path):
    vl = VersionList()
    vl.add_version("/a/one.txt", make_version("00000001", tags=(), notes=""))
    vl.add_version("/a/one.txt", make_version("00000002", tags=("release", "v1")))
    vl.add_version("/a/two.txt", make_version("00000003", size=0))
    save_list(tmp_path, vl)

    loaded = load_list(tmp_path)
    assert loaded == vl
    assert loaded.find("/a/one.txt").versions[0] == vl.find("/a/one.txt").versions[0]

    save_list(tmp_path, loaded)
    assert load_list(tmp_path) == vl


def test_saved_layout_is_stable(tmp_path):
    vl = VersionList()
    vl.add_version("/a", make_version("00000001"))
    save_list(tmp_path, vl)

    text = (tmp_path / LIST_FILE).read_text()
    assert text.endswith("\n")
    raw = json.loads(text)
    assert list(raw) == ["files"]
    assert list(raw["files"][0]) == ["path", "versions"]
    assert list(raw["files"][0]["versions"][0]) == ["id", "created_at", "tags", "notes", "size", "hash"]
    assert raw["files"][0]["versions"][0]["created_at"] == "2026-01-15T10:30:00+00:00"


def test_save_leaves_no_temp_file(tmp_path):
    save_list(tmp_path / "store", VersionList())
    assert sorted(p.name for p in (tmp_path / "store").iterdir()) == [LIST_FILE]


def test_load_accepts_nanosecond_timestamps_and_null_tags(tmp_path):
    doc = {
        "files": [{
            "path": "/a",
            "versions": [{
                "id": "2cf24dba",
                "created_at": "2024-01-15T10:30:00.123456789-05:00",
                "tags": None,
                "notes": "",
                "size": 5,
                "hash": "b" * 64,
            }],
        }]
    }
    (tmp_path / LIST_FILE).write_text(json.dumps(doc))
    version = load_list(tmp_path).find("/a").versions[0]
    assert version.tags == ()
    assert version.created_at.microsecond == 123456
    assert version.created_at.utcoffset() == timedelta(hours=-5)


@pytest.mark.parametrize("stamp, microsecond, offset", [
    ("2024-01-15T10:30:00Z", 0, timedelta(0)),
    ("2024-01-15T10:30:00.12345+02:00", 123450, timedelta(hours=2)),
    ("2024-01-15T10:30:00.5Z", 500000, timedelta(0)),
    ("2024-01-15T10:30:00.123+00:00", 123000, timedelta(0)),
])
def test_load_accepts_rfc3339_timestamps(tmp_path, stamp, microsecond, offset):
    doc = {"files": [{"path": "/a", "versions": [{
        "id": "2cf24dba", "created_at": stamp, "tags": [], "notes": "", "size": 5, "hash": "b" * 64,
    }]}]}
    (tmp_path / LIST_FILE).write_text(json.dumps(doc))
    created_at = load_list(tmp_path).find("/a").versions[0].created_at
    assert (created_at.year, created_at.hour, created_at.minute) == (2024, 10, 30)
    assert created_at.microsecond == microsecond
    assert created_at.utcoffset() == offset


def test_load_skips_entries_without_versions(tmp_path):
    (tmp_path / LIST_FILE).write_text(json.dumps({"files": [{"path": "/a", "versions": []}]}))
    assert load_list(tmp_path).find("/a") is None


@pytest.mark.parametrize("text", [
    "{not json",
    "[]",
    '{"files": "nope"}',
    '{"files": [{"versions": []}]}',
    '{"files": [{"path": "/a", "versions": [{"id": "x"}]}]}',
    '{"files": [{"path": "/a", "versions": [{"id": "x", "created_at": "yesterday",'
    ' "tags": [], "notes": "", "size": 1, "hash": "h"}]}]}',
    '{"files": [{"path": "/a", "versions": []}, {"path": "/a", "versions": []}]}',
    '{"files": [{"path": "/a", "versions": [{"id": "x", "created_at": "2024-01-15T10:30:00Z",'
    ' "tags": "abc", "notes": "", "size": 1, "hash": "h"}]}]}',
    '{"files": [{"path": "/a", "versions": [{"id": "x", "created_at": "2024-01-15T10:30:00Z",'
    ' "tags": [], "notes": "", "size": 1, "hash": 5}]}]}',
    '{"files": [{"path": "/a", "versions": [{"id": "x", "created_at": "2024-01-15T10:30:00Z",'
    ' "tags": [], "notes": ["n"], "size": 1, "hash": "h"}]}]}',
])
def test_malformed_document_is_parse_error(tmp_path, text):
    (tmp_path / LIST_FILE).write_text(text)
    with pytest.raises(ParseError, match="Invalid version list"):
        load_list(tmp_path)
