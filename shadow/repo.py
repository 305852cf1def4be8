"""Locate the .shadow store that holds a file's versions."""

import os
from pathlib import Path

from shadow.errors import ConfigError, StorageError

STORE_DIR = ".shadow"
DEFAULT_REPO_PATH = "./"


def absolute_path(path):
    """Canonical key for a tracked file: absolute, normalised, symlinks kept."""
    try:
        return os.path.abspath(os.fspath(path))
    except OSError as e:
        raise StorageError(f"Cannot resolve absolute path of {path}: {e}") from e


def _home_dir(home):
    if home is not None:
        return str(home)
    try:
        return str(Path.home())
    except (RuntimeError, KeyError) as e:
        raise ConfigError(f"Cannot determine home directory for repo_path expansion: {e}") from e


def resolve_store(target_path, repo_path=DEFAULT_REPO_PATH, home=None):
    """Return the store root for target_path.

    repo_path semantics:
        "./"       store next to the file (in its directory)
        "~/X"      store under <home>/X
        "/abs"     store under the absolute path as-is
        other      relative to the file's directory

    home is only consulted for "~/" values; None means the user's home dir.
    """
    abs_target = absolute_path(target_path)
    base = abs_target if os.path.isdir(abs_target) else os.path.dirname(abs_target)

    repo_path = repo_path or DEFAULT_REPO_PATH
    if repo_path.startswith("~/"):
        repo_path = os.path.join(_home_dir(home), repo_path[2:])

    if os.path.isabs(repo_path):
        store_base = os.path.normpath(repo_path)
    elif repo_path == DEFAULT_REPO_PATH:
        store_base = base
    else:
        store_base = os.path.normpath(os.path.join(base, repo_path))

    return Path(store_base) / STORE_DIR
