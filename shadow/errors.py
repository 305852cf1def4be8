"""Error types raised by the version store.

The CLI catches ShadowError and prints its message; everything else is a bug.
"""


class ShadowError(Exception):
    """Base class for every failure surfaced to the user."""


class NotFoundError(ShadowError):
    """A tracked path, version id, source file or snapshot blob is missing."""


class StorageError(ShadowError):
    """An underlying filesystem (or object storage) operation failed."""


class ParseError(ShadowError):
    """The metadata document exists but cannot be decoded."""


class ConfigError(ShadowError):
    """Configuration cannot be resolved (home dir, config file, backend)."""


class ConsistencyError(ShadowError):
    """The in-memory version list disagrees with a lookup made moments earlier."""
