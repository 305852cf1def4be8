from abc import ABC, abstractmethod


class SnapshotStore(ABC):
    """Base interface for snapshot blob backends.

    Blobs are addressed by (store_root, version_id). Implementations:
    LocalSnapshotStore (default), S3SnapshotStore.
    """

    @abstractmethod
    def ensure(self, store_root):
        """Make sure the blob area for store_root exists. Idempotent."""
        pass

    @abstractmethod
    def write(self, store_root, version_id, source_path):
        """Copy source_path into the blob named version_id. Overwrites."""
        pass

    @abstractmethod
    def write_bytes(self, store_root, version_id, content):
        """Store content as the blob named version_id. Overwrites."""
        pass

    @abstractmethod
    def restore(self, store_root, version_id, dest_path):
        """Overwrite dest_path with the blob. Raises NotFoundError if absent."""
        pass

    @abstractmethod
    def delete(self, store_root, version_id):
        """Remove the blob. Already-absent counts as success."""
        pass

    @abstractmethod
    def exists(self, store_root, version_id):
        """Whether the blob for version_id is present."""
        pass
