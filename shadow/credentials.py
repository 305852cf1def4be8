import os

from dotenv import dotenv_values, set_key

from shadow.config import SHADOW_HOME

CREDENTIALS_FILE = SHADOW_HOME / "credentials"


def load_credentials():
    """Load ~/.config/shadow/credentials into os.environ.

    Holds keys for optional backends (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY,
    AWS_DEFAULT_REGION for S3 snapshots) so users don't have to export them
    every session. Format: KEY=VALUE, one per line. Variables already set in
    the environment win.
    """
    if not CREDENTIALS_FILE.exists():
        return {}

    creds = {k: v for k, v in dotenv_values(CREDENTIALS_FILE).items() if v is not None}
    for key, value in creds.items():
        if key not in os.environ:
            os.environ[key] = value
    return creds


def save_credential(key, value):
    """Save or update a single credential in ~/.config/shadow/credentials."""
    CREDENTIALS_FILE.parent.mkdir(parents=True, exist_ok=True)
    CREDENTIALS_FILE.parent.chmod(0o700)
    CREDENTIALS_FILE.touch(mode=0o600, exist_ok=True)

    # Replaces an existing KEY= line in place, appends otherwise.
    set_key(CREDENTIALS_FILE, key, value, quote_mode="never")
    CREDENTIALS_FILE.chmod(0o600)
    os.environ[key] = value
