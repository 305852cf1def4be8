"""Save, restore and delete use cases.

Each use case touches two things that are not committed together: the blob in
snapshots/ and the metadata document list.json. The ordering is fixed so that
an interrupted run leaves at worst an orphan blob:

    save     blob write        -> list.json commit
    delete   list.json commit  -> blob delete

Nothing is rolled back on failure. The whole load-modify-save cycle runs under
the store lock.
"""

import os
from datetime import datetime
from pathlib import Path

from shadow.errors import ConsistencyError, NotFoundError, StorageError
from shadow.fingerprint import content_hash, short_id
from shadow.lock import store_lock
from shadow.repo import absolute_path
from shadow.snapshot.local import LocalSnapshotStore
from shadow.versions import Version, load_list, save_list

AUTO_SAVE_TAGS = ("auto-save",)
AUTO_SAVE_NOTES = "Saved before restore"


def _read_source(path):
    if os.path.isdir(path):
        raise NotFoundError(f"Not a file: {path}")
    try:
        return Path(path).read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(f"File not found: {path}") from e
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}") from e


def _lookup(version_list, abs_path, version_id, display_path):
    entry = version_list.find(abs_path)
    if entry is None:
        raise NotFoundError(f"File not tracked: {display_path}")
    version = entry.get(version_id)
    if version is None:
        raise NotFoundError(f"Version not found: {version_id}")
    return version


def _require_store(store_root, display_path):
    # Don't create an empty store just to report that nothing is tracked.
    if not Path(store_root).is_dir():
        raise NotFoundError(f"File not tracked: {display_path}")


def _save(store_root, abs_path, content, tags, notes, snapshots):
    # id, hash, size and blob all come from the same bytes.
    version_id = short_id(content)

    snapshots.ensure(store_root)
    snapshots.write_bytes(store_root, version_id, content)

    version = Version(
        id=version_id,
        created_at=datetime.now().astimezone(),
        tags=tuple(tags),
        notes=notes or "",
        size=len(content),
        hash=content_hash(content),
    )
    version_list = load_list(store_root)
    version_list.add_version(abs_path, version)
    save_list(store_root, version_list)
    return version


def save_version(store_root, file_path, tags=(), notes="", snapshots=None):
    """Snapshot file_path into the store and record it as its newest version."""
    snapshots = snapshots or LocalSnapshotStore()
    abs_path = absolute_path(file_path)
    content = _read_source(abs_path)
    with store_lock(store_root):
        return _save(store_root, abs_path, content, tags, notes, snapshots)


def restore_version(store_root, file_path, version_id, auto_save=True, snapshots=None):
    """Overwrite file_path with the content of version_id.

    With auto_save, the current content (if the file exists) is saved first
    and fully committed before the overwrite. Returns that auto-save version,
    or None.
    """
    snapshots = snapshots or LocalSnapshotStore()
    abs_path = absolute_path(file_path)
    _require_store(store_root, file_path)

    with store_lock(store_root):
        _lookup(load_list(store_root), abs_path, version_id, file_path)

        saved = None
        if auto_save and os.path.isfile(abs_path):
            content = _read_source(abs_path)
            saved = _save(store_root, abs_path, content, AUTO_SAVE_TAGS, AUTO_SAVE_NOTES, snapshots)

        snapshots.restore(store_root, version_id, abs_path)
    return saved


def delete_version(store_root, file_path, version_id, snapshots=None):
    """Remove version_id from file_path's history, then its blob.

    The blob is kept while any other version in the store still references
    the same id (identical content saved twice, or by another file).
    """
    snapshots = snapshots or LocalSnapshotStore()
    abs_path = absolute_path(file_path)
    _require_store(store_root, file_path)

    with store_lock(store_root):
        version_list = load_list(store_root)
        version = _lookup(version_list, abs_path, version_id, file_path)

        if not version_list.remove_version(abs_path, version_id):
            raise ConsistencyError(
                f"Version {version_id} of {abs_path} was found but could not be removed"
            )
        save_list(store_root, version_list)

        still_referenced = any(entry.get(version_id) for entry in version_list)
        if not still_referenced:
            snapshots.delete(store_root, version_id)
    return version


def describe(store_root, file_path):
    """Return (entry, version_list) for a tracked file."""
    abs_path = absolute_path(file_path)
    version_list = load_list(store_root)
    entry = version_list.find(abs_path)
    if entry is None:
        raise NotFoundError(f"File not tracked: {file_path}")
    return entry, version_list
