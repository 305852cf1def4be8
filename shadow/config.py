import json
from pathlib import Path

from shadow.errors import ConfigError

SHADOWCONFIG = ".shadowconfig"
SHADOW_HOME = Path.home() / ".config" / "shadow"
GLOBAL_CONFIG_FILE = SHADOW_HOME / "config.json"

DEFAULT_CONFIG = {
    "repo_path": "./",
    "snapshot_backend": "local",
    # Optional: "s3_bucket": "my-shadow-snapshots"
}

SETTABLE_KEYS = ("repo_path", "snapshot_backend", "s3_bucket")


def load_global_config():
    """Load ~/.config/shadow/config.json, the user-wide defaults."""
    if GLOBAL_CONFIG_FILE.exists():
        try:
            return json.loads(GLOBAL_CONFIG_FILE.read_text())
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def save_global_config(updates):
    """Merge updates into ~/.config/shadow/config.json."""
    existing = load_global_config()
    existing.update(updates)
    GLOBAL_CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    GLOBAL_CONFIG_FILE.write_text(json.dumps(existing, indent=2) + "\n")


def find_config(start=None):
    """Walk up from start (default: cwd) to find .shadowconfig, like git finds .git."""
    current = Path(start).resolve() if start else Path.cwd()
    for parent in [current, *current.parents]:
        config_path = parent / SHADOWCONFIG
        if config_path.is_file():
            return config_path
    return None


def load_config(start=None):
    # Merge order: defaults -> global config -> project .shadowconfig
    config = {**DEFAULT_CONFIG, **load_global_config()}

    config_path = find_config(start)
    if config_path:
        try:
            raw = json.loads(config_path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {config_path}: {e}")
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        config.update(raw)

    repo_path = config.get("repo_path")
    if repo_path is not None and not isinstance(repo_path, str):
        raise ConfigError(f"repo_path must be a string, got {repo_path!r}")
    if not repo_path:
        config["repo_path"] = DEFAULT_CONFIG["repo_path"]

    return config


def init_config(path=None, repo_path=None):
    """Create a .shadowconfig in the given directory."""
    target = Path(path) if path else Path.cwd()
    config_path = target / SHADOWCONFIG
    init = {"repo_path": repo_path or load_global_config().get("repo_path") or DEFAULT_CONFIG["repo_path"]}
    config_path.write_text(json.dumps(init, indent=2) + "\n")
    return config_path
