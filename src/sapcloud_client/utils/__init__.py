"""Utility exports."""
from .encoding import b64d, b64e
from .validation import ensure_api_prefix, ensure_http_url, resolve_and_check_path

__all__ = [
    "b64d",
    "b64e",
    "ensure_api_prefix",
    "ensure_http_url",
    "resolve_and_check_path",
]
