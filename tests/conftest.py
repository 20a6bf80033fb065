"""
pytest configuration for kodama_auth tests.

Adds src directory to Python path for imports and isolates every test from
the developer's real home directory and auth environment variables.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

AUTH_ENV_VARS = (
    "CLAUDE_CODE_AUTH_TOKEN",
    "KODAMA_AUTH_TYPE",
    "KODAMA_AUTH_PROFILE",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at an empty temp dir and clear auth env vars."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for name in AUTH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def auth_dir(isolated_home):
    """The ~/.kodama directory, created."""
    path = isolated_home / ".kodama"
    path.mkdir()
    return path
