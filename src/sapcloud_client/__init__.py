"""SapCloud client device identity and challenge-response authentication."""
from .auth import AuthOrchestrator, AuthOutcome, AuthState
from .config import AppConfig, load_config
from .crypto import KeyStore, Signer
from .exceptions import SapCloudError
from .transport import AuthTransport, HttpTransport
from .version import __version__

__all__ = [
    "AppConfig",
    "AuthOrchestrator",
    "AuthOutcome",
    "AuthState",
    "AuthTransport",
    "HttpTransport",
    "KeyStore",
    "SapCloudError",
    "Signer",
    "__version__",
    "load_config",
]
