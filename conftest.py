import pytest

from shadow import config, credentials, log


@pytest.fixture(autouse=True)
def shadow_home(tmp_path, monkeypatch):
    """Point every ~/.config/shadow file at a throwaway directory."""
    home = tmp_path / "shadow-home"
    monkeypatch.setattr(config, "GLOBAL_CONFIG_FILE", home / "config.json")
    monkeypatch.setattr(credentials, "CREDENTIALS_FILE", home / "credentials")
    monkeypatch.setattr(log, "LOGS_FILE", home / "logs.jsonl")
    return home


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """An empty project directory that is also the cwd."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path
