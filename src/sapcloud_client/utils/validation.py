"""Validation helpers for security-sensitive inputs."""
from __future__ import annotations

from pathlib import Path
from urllib.parse import urlsplit

_ALLOWED_SCHEMES = {"http", "https"}


def ensure_http_url(url: str) -> str:
    """Ensure ``url`` is an absolute http(s) URL and strip any trailing slash.

    Parameters
    ----------
    url:
        Server base URL as entered by the user.

    Returns
    -------
    str
        Normalised URL without a trailing ``/``.

    Raises
    ------
    ValueError
        If the scheme is not http/https or the host is missing.
    """

    url = url.strip()
    if not url:
        raise ValueError("Server URL must not be empty")
    parts = urlsplit(url)
    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise ValueError(f"Server URL '{url}' must use http or https")
    if not parts.netloc:
        raise ValueError(f"Server URL '{url}' is missing a host")
    return url.rstrip("/")


def ensure_api_prefix(prefix: str) -> str:
    """Normalise an API path prefix to ``/segment/...`` without a trailing slash."""

    prefix = prefix.strip().strip("/")
    return f"/{prefix}" if prefix else ""


def _normalise_path(path: Path | str) -> Path:
    return Path(path).expanduser().resolve(strict=False)


def resolve_and_check_path(path: Path | str) -> Path:
    """Resolve ``path`` to an absolute path without requiring it to exist.

    User tildes are expanded and relative paths containing ``..`` components
    are rejected to prevent directory traversal.
    """

    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        if any(part == ".." for part in candidate.parts):
            raise ValueError(f"Path traversal is not allowed: {path}")
        return _normalise_path(Path.cwd() / candidate)
    return _normalise_path(candidate)


__all__ = ["ensure_http_url", "ensure_api_prefix", "resolve_and_check_path"]
