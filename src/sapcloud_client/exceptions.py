"""Central exception hierarchy for the SapCloud client."""
from __future__ import annotations


class SapCloudError(Exception):
    """Base exception for all client failures"""


class KeyIOError(SapCloudError):
    """Raised when key material cannot be read from or written to disk"""


class KeyNotFoundError(KeyIOError):
    """Raised when a key file does not exist"""


class KeyGenerationError(KeyIOError):
    """Raised when the key generation primitive fails"""


class FormatError(SapCloudError):
    """Raised for malformed PEM, portable key lines, base64 or wrong key algorithm"""


class StateError(SapCloudError):
    """Raised when an operation needs key material or state that is not present"""


class HandshakeInProgressError(StateError):
    """Raised when a handshake is started while another one is still running"""


class HandshakeAbortedError(StateError):
    """Recorded when a handshake is interrupted by cancellation or an unexpected error"""


class CryptoError(SapCloudError):
    """Raised when a signing primitive fails"""


class NetworkError(SapCloudError):
    """Raised when the transport cannot reach the server"""


class ProtocolError(SapCloudError):
    """Raised when the server rejects a handshake step or answers with garbage"""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "SapCloudError",
    "KeyIOError",
    "KeyNotFoundError",
    "KeyGenerationError",
    "FormatError",
    "StateError",
    "HandshakeInProgressError",
    "HandshakeAbortedError",
    "CryptoError",
    "NetworkError",
    "ProtocolError",
]
