"""Audit logging.

Appends structured JSON entries to ~/.config/shadow/logs.jsonl.
Each entry records one completed operation (save, restore, delete) with
timestamp, file, version ID, and store root.
"""

import json
from datetime import datetime

from shadow.config import SHADOW_HOME

LOGS_FILE = SHADOW_HOME / "logs.jsonl"


def write_log(entry):
    """Append an audit log entry."""
    LOGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    entry["timestamp"] = datetime.now().isoformat()
    with open(LOGS_FILE, "a") as f:
        f.write(json.dumps(entry) + "\n")


def read_logs(file=None):
    """Return logged entries oldest-first, optionally only those for one file path."""
    if not LOGS_FILE.exists():
        return []

    entries = []
    for line in LOGS_FILE.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if file and entry.get("file") != file:
            continue
        entries.append(entry)
    return entries
