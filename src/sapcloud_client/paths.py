"""Shared filesystem path helpers for the SapCloud client."""
from __future__ import annotations

import sys
from pathlib import Path

from platformdirs import PlatformDirs

_APP_NAME = "SapCloud"
_LINUX_APP_NAME = "sapcloud"
_KEY_FILENAME = "id_ed25519"


def runtime_config_dir() -> Path:
    """Return the per-user configuration directory."""
    if sys.platform in ("win32", "darwin"):
        dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=True)
    else:
        dirs = PlatformDirs(appname=_LINUX_APP_NAME, appauthor=None, roaming=False)
    return Path(dirs.user_config_path)


def default_key_path() -> Path:
    """Return the default location of the device identity private key."""
    return runtime_config_dir() / "keys" / _KEY_FILENAME


def public_key_path(private_key_path: Path | str) -> Path:
    """Return the ``<path>.pub`` companion of a private key path."""
    path = Path(private_key_path)
    return path.with_name(path.name + ".pub")


__all__ = ["runtime_config_dir", "default_key_path", "public_key_path"]
