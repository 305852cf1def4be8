"""S3-backed snapshot store.

Blobs are stored as individual objects:
    s3://<bucket>/snapshots/<store_hash>/<version_id>

store_hash is derived from the store root so that several local stores can
share one bucket without their version ids clashing. The metadata document
(list.json) always stays in the local store root; only blobs go to S3.

Requires boto3: pip install -e ".[aws]"
"""

import hashlib
from pathlib import Path

from shadow.errors import ConfigError, NotFoundError, StorageError
from shadow.snapshot.base import SnapshotStore

S3_PREFIX = "snapshots"

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(e):
    return (getattr(e, "response", None) or {}).get("Error", {}).get("Code", "")


class S3SnapshotStore(SnapshotStore):
    """Snapshot store backed by an S3 bucket."""

    def __init__(self, bucket, client=None):
        if client is None:
            try:
                import boto3
            except ImportError:
                raise ConfigError(
                    "boto3 is required for S3 snapshots. "
                    "Install with: pip install -e '.[aws]'"
                )
            client = boto3.client("s3")
        self._s3 = client
        self.bucket = bucket

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def ensure(self, store_root):
        # Buckets have no directories to create.
        pass

    def write(self, store_root, version_id, source_path):
        try:
            body = Path(source_path).read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {source_path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {source_path}: {e}") from e
        self.write_bytes(store_root, version_id, body)

    def write_bytes(self, store_root, version_id, content):
        try:
            self._s3.put_object(Bucket=self.bucket, Key=self._key(store_root, version_id), Body=content)
        except Exception as e:
            if _error_code(e) == "NoSuchBucket":
                raise ConfigError(
                    f"S3 bucket '{self.bucket}' does not exist. "
                    "Create it first or change s3_bucket in your config."
                ) from e
            raise StorageError(f"Failed to upload snapshot {version_id}: {e}") from e

    def restore(self, store_root, version_id, dest_path):
        key = self._key(store_root, version_id)
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except Exception as e:
            if _error_code(e) in _MISSING_CODES:
                raise NotFoundError(f"Snapshot {version_id} not found in s3://{self.bucket}/{key}") from e
            raise StorageError(f"Failed to download snapshot {version_id}: {e}") from e

        dest = Path(dest_path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to restore {dest_path} from snapshot {version_id}: {e}") from e

    def delete(self, store_root, version_id):
        # DeleteObject succeeds for keys that do not exist.
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=self._key(store_root, version_id))
        except Exception as e:
            raise StorageError(f"Failed to delete snapshot {version_id}: {e}") from e

    def exists(self, store_root, version_id):
        try:
            self._s3.head_object(Bucket=self.bucket, Key=self._key(store_root, version_id))
        except Exception as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to check snapshot {version_id}: {e}") from e
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _key(self, store_root, version_id):
        store_hash = hashlib.md5(str(store_root).encode()).hexdigest()[:12]
        return f"{S3_PREFIX}/{store_hash}/{version_id}"
