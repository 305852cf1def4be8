import shutil
from pathlib import Path

from shadow.errors import NotFoundError, StorageError
from shadow.snapshot.base import SnapshotStore

SNAPSHOTS_DIR = "snapshots"


def snapshot_path(store_root, version_id):
    return Path(store_root) / SNAPSHOTS_DIR / version_id


class LocalSnapshotStore(SnapshotStore):
    """Blobs live as plain files in <store_root>/snapshots/<id>.

    Writes are plain copies, not temp-file + rename: a crash mid-copy can leave
    a truncated blob behind.
    """

    def ensure(self, store_root):
        try:
            (Path(store_root) / SNAPSHOTS_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create snapshot directory in {store_root}: {e}") from e

    def write(self, store_root, version_id, source_path):
        dest = snapshot_path(store_root, version_id)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, dest)
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {source_path}") from e
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {version_id}: {e}") from e

    def write_bytes(self, store_root, version_id, content):
        dest = snapshot_path(store_root, version_id)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {version_id}: {e}") from e

    def restore(self, store_root, version_id, dest_path):
        src = snapshot_path(store_root, version_id)
        if not src.is_file():
            raise NotFoundError(f"Snapshot {version_id} not found in {Path(store_root) / SNAPSHOTS_DIR}")
        try:
            Path(dest_path).parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest_path)
        except OSError as e:
            raise StorageError(f"Failed to restore {dest_path} from snapshot {version_id}: {e}") from e

    def delete(self, store_root, version_id):
        try:
            snapshot_path(store_root, version_id).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {version_id}: {e}") from e

    def exists(self, store_root, version_id):
        return snapshot_path(store_root, version_id).is_file()
