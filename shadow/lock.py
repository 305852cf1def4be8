"""Exclusive per-store lock held across a load-modify-save cycle.

Without it, two shadow processes working on the same store can both load
list.json and the second save silently drops the first one's change.
"""

from contextlib import contextmanager
from pathlib import Path

from shadow.errors import StorageError

try:
    import fcntl
    _FCNTL_AVAILABLE = True
except ImportError:
    _FCNTL_AVAILABLE = False  # Windows fallback: no locking

LOCK_FILE = "lock"


@contextmanager
def store_lock(store_root):
    """Hold an exclusive flock on <store_root>/lock. Blocks until acquired."""
    lock_path = Path(store_root) / LOCK_FILE
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_fd = open(lock_path, "w")
    except OSError as e:
        raise StorageError(f"Failed to open store lock {lock_path}: {e}") from e
    try:
        if _FCNTL_AVAILABLE:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
        yield lock_path
    finally:
        if _FCNTL_AVAILABLE:
            fcntl.flock(lock_fd, fcntl.LOCK_UN)
        lock_fd.close()
