"""Transports carrying the authentication handshake."""
from .base import AuthTransport
from .http import HttpTransport

__all__ = ["AuthTransport", "HttpTransport"]
