"""Device identity key store.

Owns the Ed25519 identity used to authenticate against the SapCloud API. The
private key is persisted as PKCS#8 PEM with owner-only permissions and the
public key as a portable ``ssh-ed25519`` line next to it (``<path>.pub``).
Every failing operation leaves previously loaded key material untouched.
"""
from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ..config import DEFAULT_COMMENT
from ..exceptions import FormatError, KeyGenerationError, KeyIOError, KeyNotFoundError, StateError
from ..paths import public_key_path
from .wire import ED25519_KEY_LENGTH, encode_public_key, parse_public_key

_PRIVATE_MODE = 0o600

logger = structlog.get_logger(__name__)


def _raw_public_bytes(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


class KeyStore:
    """Filesystem-backed holder of a single Ed25519 identity key pair"""

    def __init__(self, *, comment: str = DEFAULT_COMMENT) -> None:
        self._comment = comment
        self._private_key: Ed25519PrivateKey | None = None
        self._public_key = b""

    @property
    def comment(self) -> str:
        return self._comment

    @property
    def has_private_key(self) -> bool:
        return self._private_key is not None

    @property
    def has_public_key(self) -> bool:
        return len(self._public_key) == ED25519_KEY_LENGTH

    @property
    def public_key_bytes(self) -> bytes:
        if not self.has_public_key:
            raise StateError("No public key loaded")
        return self._public_key

    @property
    def private_key(self) -> Ed25519PrivateKey:
        if self._private_key is None:
            raise StateError("No private key loaded")
        return self._private_key

    # ----- Loading -----
    def load_private_key(self, path: Path | str, passphrase: bytes | None = None) -> None:
        key_path = Path(path)
        key = self._read_private_key(key_path, passphrase)
        self._private_key = key
        self._public_key = _raw_public_bytes(key)
        logger.info("keystore.private_key.loaded", path=str(key_path))

    def load_public_key(self, path: Path | str) -> None:
        key_path = Path(path)
        public = self._read_public_key(key_path)
        if self._private_key is not None:
            self._check_pair(public, self._private_key, key_path)
        self._public_key = public
        logger.info("keystore.public_key.loaded", path=str(key_path))

    # ----- Generation -----
    def generate_key_pair(self) -> None:
        key = self._new_private_key()
        self._private_key = key
        self._public_key = _raw_public_bytes(key)
        logger.info("keystore.generated")

    # ----- Persistence -----
    def save_private_key(self, path: Path | str, passphrase: bytes | None = None) -> Path:
        return self._write_private_key(self.private_key, Path(path), passphrase)

    def save_public_key(self, path: Path | str) -> Path:
        return self._write_public_key(self.get_public_key_string(), Path(path))

    def get_public_key_string(self) -> str:
        return encode_public_key(self.public_key_bytes, self._comment)

    def ensure_identity(self, path: Path | str, passphrase: bytes | None = None) -> bool:
        """Load the identity at ``path``, creating and persisting one if none exists.

        Returns ``True`` when a new key pair was generated. A missing ``.pub``
        companion is rewritten from the private key. The store only takes the
        new identity once every read, check and write has succeeded.
        """
        key_path = Path(path)
        pub_path = public_key_path(key_path)
        created = False
        try:
            key = self._read_private_key(key_path, passphrase)
        except KeyNotFoundError:
            key = self._new_private_key()
            created = True
        public = _raw_public_bytes(key)

        if created:
            self._write_private_key(key, key_path, passphrase)
            self._write_public_key(encode_public_key(public, self._comment), pub_path)
        elif pub_path.exists():
            self._check_pair(self._read_public_key(pub_path), key, pub_path)
        else:
            self._write_public_key(encode_public_key(public, self._comment), pub_path)

        self._private_key = key
        self._public_key = public
        logger.info("keystore.identity.ready", path=str(key_path), created=created)
        return created

    # ----- Helpers -----
    def _read_private_key(self, key_path: Path, passphrase: bytes | None) -> Ed25519PrivateKey:
        pem = self._read(key_path, "private key")
        self._warn_if_exposed(key_path)
        try:
            key = serialization.load_pem_private_key(pem, password=passphrase or None)
        except TypeError as exc:
            # raised for a missing passphrase on an encrypted key and vice versa
            raise FormatError(f"Failed to load private key {key_path}: {exc}") from exc
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise FormatError(
                f"Failed to load private key {key_path} - invalid format or wrong passphrase"
            ) from exc
        if not isinstance(key, Ed25519PrivateKey):
            raise FormatError("Only Ed25519 keys are supported")
        return key

    def _read_public_key(self, key_path: Path) -> bytes:
        line = self._read(key_path, "public key").decode("utf-8", "replace")
        return parse_public_key(line).key

    @staticmethod
    def _check_pair(public: bytes, key: Ed25519PrivateKey, key_path: Path) -> None:
        if public != _raw_public_bytes(key):
            raise FormatError(f"Public key {key_path} does not match the loaded private key")

    @staticmethod
    def _new_private_key() -> Ed25519PrivateKey:
        try:
            key = Ed25519PrivateKey.generate()
        except UnsupportedAlgorithm as exc:
            raise KeyGenerationError("Failed to generate Ed25519 key pair") from exc
        return key

    @staticmethod
    def _write_private_key(key: Ed25519PrivateKey, key_path: Path, passphrase: bytes | None) -> Path:
        if passphrase:
            encryption: serialization.KeySerializationEncryption = serialization.BestAvailableEncryption(passphrase)
        else:
            encryption = serialization.NoEncryption()
        pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )
        try:
            key_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PRIVATE_MODE)
            with os.fdopen(fd, "wb") as handle:
                handle.write(pem)
            os.chmod(key_path, _PRIVATE_MODE)
        except OSError as exc:
            raise KeyIOError(f"Cannot open file for writing: {key_path}") from exc
        logger.info("keystore.private_key.saved", path=str(key_path))
        return key_path

    @staticmethod
    def _write_public_key(line: str, key_path: Path) -> Path:
        try:
            key_path.parent.mkdir(parents=True, exist_ok=True)
            key_path.write_text(line + "\n", encoding="utf-8")
        except OSError as exc:
            raise KeyIOError(f"Cannot open file for writing: {key_path}") from exc
        logger.info("keystore.public_key.saved", path=str(key_path))
        return key_path

    @staticmethod
    def _read(path: Path, what: str) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise KeyNotFoundError(f"Cannot open {what} file: {path}") from exc
        except OSError as exc:
            raise KeyIOError(f"Cannot open {what} file: {path}") from exc

    @staticmethod
    def _warn_if_exposed(path: Path) -> None:
        if sys.platform == "win32":
            return
        mode = stat.S_IMODE(path.stat().st_mode)
        if mode & 0o077:
            logger.warning("keystore.insecure_permissions", path=str(path), mode=oct(mode))


__all__ = ["KeyStore"]
