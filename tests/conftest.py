"""Test configuration and fixtures."""
from pathlib import Path

import pytest
import yaml

from rexit import spawn
from tests.utils.fake_spawn import FakeSpawner


@pytest.fixture(autouse=True)
def fake_spawner():
    """Install a FakeSpawner for every test so nothing real is ever started."""
    fake = FakeSpawner()
    spawn.set_spawner(fake)
    yield fake
    spawn.reset_spawner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the developer's real theme file."""
    monkeypatch.delenv("REXIT_CONFIG", raising=False)
    monkeypatch.delenv("REXIT_LOG_FILE", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return tmp_path / "xdg"


@pytest.fixture
def theme_file(tmp_path):
    """Write a theme YAML file and return its path."""
    def _write(data) -> Path:
        path = tmp_path / "config.yaml"
        with path.open("w") as f:
            yaml.safe_dump(data, f)
        return path

    return _write
