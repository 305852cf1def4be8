"""The metadata document: which files are tracked and their version history.

On disk this is <store_root>/list.json:

    {"files": [{"path": "/abs/file", "versions": [{"id": ..., "created_at": ...,
                "tags": [...], "notes": ..., "size": ..., "hash": ...}]}]}

Versions are kept newest first. Order comes from insertion (new versions go to
the front), never from sorting on created_at.
"""

import json
import os
import re
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from shadow.errors import ParseError, StorageError

LIST_FILE = "list.json"

_VERSION_FIELDS = ("id", "created_at", "tags", "notes", "size", "hash")
_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value):
    # fromisoformat before 3.11 takes neither "Z" nor fractions other than
    # 3 or 6 digits; RFC 3339 writers emit both.
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Version:
    id: str
    created_at: datetime
    tags: tuple = ()
    notes: str = ""
    size: int = 0
    hash: str = ""

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self):
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "tags": list(self.tags),
            "notes": self.notes,
            "size": self.size,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, raw):
        missing = [k for k in _VERSION_FIELDS if k not in raw and k != "tags"]
        if missing:
            raise ValueError(f"version is missing {', '.join(missing)}")
        if not isinstance(raw["id"], str) or not isinstance(raw["size"], int):
            raise ValueError(f"version {raw['id']!r} has a malformed id or size")
        tags = raw.get("tags") or []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValueError(f"version {raw['id']} has malformed tags")
        if not isinstance(raw["hash"], str) or not isinstance(raw["notes"] or "", str):
            raise ValueError(f"version {raw['id']} has a malformed hash or notes")
        return cls(
            id=raw["id"],
            created_at=_parse_timestamp(raw["created_at"]),
            tags=tuple(tags),
            notes=raw["notes"] or "",
            size=raw["size"],
            hash=raw["hash"],
        )


@dataclass
class FileEntry:
    path: str
    versions: deque = field(default_factory=deque)

    def get(self, version_id):
        """First (newest) version with this id, or None."""
        return next((v for v in self.versions if v.id == version_id), None)

    @property
    def total_size(self):
        return sum(v.size for v in self.versions)

    def to_dict(self):
        return {"path": self.path, "versions": [v.to_dict() for v in self.versions]}


class VersionList:
    """Tracked files keyed by canonical absolute path.

    Enumeration follows the order files were first added.
    """

    def __init__(self, entries=None):
        self._entries = {}
        for entry in entries or ():
            self._entries[entry.path] = entry

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self):
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, VersionList):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def files(self):
        return list(self._entries.values())

    def find(self, path):
        return self._entries.get(path)

    def add_version(self, path, version):
        """Make version the newest of path's history, creating the entry if needed.

        Duplicate ids are accepted: saving identical content twice yields two
        versions with the same id.
        """
        entry = self._entries.get(path)
        if entry is None:
            self._entries[path] = FileEntry(path, deque([version]))
        else:
            entry.versions.appendleft(version)

    def remove_version(self, path, version_id):
        """Remove the first version of path with version_id.

        Drops the whole entry when its last version goes. Returns False and
        leaves the list untouched when path or id is unknown.
        """
        entry = self._entries.get(path)
        if entry is None:
            return False
        version = entry.get(version_id)
        if version is None:
            return False
        entry.versions.remove(version)
        if not entry.versions:
            del self._entries[path]
        return True

    def to_dict(self):
        return {"files": [e.to_dict() for e in self._entries.values()]}

    @classmethod
    def from_dict(cls, raw):
        if not isinstance(raw, dict):
            raise ValueError("top level must be an object")
        files = raw.get("files") or []
        if not isinstance(files, list):
            raise ValueError("'files' must be a list")

        version_list = cls()
        seen = set()
        for item in files:
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                raise ValueError("every file entry needs a string 'path'")
            path = item["path"]
            if path in seen:
                raise ValueError(f"duplicate file entry for {path}")
            seen.add(path)
            versions = deque(Version.from_dict(v) for v in item.get("versions") or [])
            if versions:
                version_list._entries[path] = FileEntry(path, versions)
        return version_list


def list_path(store_root):
    return Path(store_root) / LIST_FILE


def load_list(store_root):
    """Load the metadata document. A store that was never saved is empty, not an error."""
    path = list_path(store_root)
    try:
        text = path.read_text()
    except FileNotFoundError:
        return VersionList()
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}") from e

    try:
        return VersionList.from_dict(json.loads(text))
    except (json.JSONDecodeError, ValueError, TypeError, KeyError, AttributeError) as e:
        raise ParseError(f"Invalid version list in {path}: {e}") from e


def save_list(store_root, version_list):
    """Persist the document atomically: write list.json.tmp, then rename over list.json."""
    path = list_path(store_root)
    tmp_path = path.with_name(path.name + ".tmp")
    data = json.dumps(version_list.to_dict(), indent=2) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Failed to save {path}: {e}") from e
