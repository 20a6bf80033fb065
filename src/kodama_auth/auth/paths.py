"""
Path resolution for credential and cache files.

Home-directory expansion happens at the point of use rather than at
configuration time, so a missing home directory leaves the path untouched
instead of failing provider construction.
"""

from pathlib import Path

DEFAULT_AUTH_DIR = ".kodama"
DEFAULT_AUTH_FILENAME = "claude-auth.json"


def home_dir() -> Path | None:
    """Return the user's home directory, or None if it cannot be resolved."""
    try:
        return Path.home()
    except RuntimeError:
        return None


def expand_path(path: str) -> str:
    """
    Expand a leading ``~`` against the home directory.

    Only the current user's home is supported (``~`` or ``~/...``). When the
    home directory cannot be resolved the path is returned unchanged.

    Examples:
        >>> expand_path("~/.kodama/cache.json")  # doctest: +SKIP
        '/home/alice/.kodama/cache.json'
        >>> expand_path("/etc/kodama/auth.json")
        '/etc/kodama/auth.json'
    """
    if not path or not path.startswith("~"):
        return path

    home = home_dir()
    if home is None:
        return path
    rest = path[1:].lstrip("/\\")
    return str(home / rest) if rest else str(home)


def default_auth_file_path() -> Path | None:
    """Default credential file: ``<home>/.kodama/claude-auth.json``."""
    home = home_dir()
    if home is None:
        return None
    return home / DEFAULT_AUTH_DIR / DEFAULT_AUTH_FILENAME


__all__ = [
    "DEFAULT_AUTH_DIR",
    "DEFAULT_AUTH_FILENAME",
    "home_dir",
    "expand_path",
    "default_auth_file_path",
]
