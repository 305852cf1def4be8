import hashlib

from shadow.errors import StorageError

CHUNK_SIZE = 64 * 1024


def short_id(content):
    """8-hex-char version id: the first 4 bytes of the SHA-256 digest.

    Truncation to 32 bits means distinct contents can collide. Collisions are
    not detected; a colliding save overwrites the earlier blob.
    """
    return hashlib.sha256(content).digest()[:4].hex()


def full_hash(path):
    """Stream a file through SHA-256 and return the 64-hex-char digest."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise StorageError(f"Failed to hash {path}: {e}") from e
    return digest.hexdigest()


def content_hash(content):
    """64-hex-char SHA-256 digest of bytes already in memory."""
    return hashlib.sha256(content).hexdigest()
