from __future__ import annotations

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from ..exceptions import CryptoError, FormatError
from ..utils.encoding import b64d, b64e
from .keystore import KeyStore

SIGNATURE_LENGTH = 64

logger = structlog.get_logger(__name__)


class Signer:
    """Produces detached pure-Ed25519 signatures over server challenges"""

    def __init__(self, key_store: KeyStore) -> None:
        self._key_store = key_store

    def sign_challenge(self, challenge: str) -> str:
        message = b64d(challenge, what="challenge")
        if not message:
            raise FormatError("Invalid challenge encoding")
        private_key = self._key_store.private_key
        try:
            signature = private_key.sign(message)
        except Exception as exc:
            raise CryptoError("Failed to sign challenge") from exc
        if len(signature) != SIGNATURE_LENGTH:
            raise CryptoError(f"Unexpected signature length {len(signature)}")
        logger.debug("signer.signed", challenge_bytes=len(message))
        return b64e(signature)


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> None:
    """Check a detached Ed25519 signature, raising :class:`CryptoError` on mismatch"""
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
    except InvalidSignature as exc:
        raise CryptoError("Signature verification failed") from exc
    except ValueError as exc:
        raise CryptoError(f"Invalid Ed25519 public key: {exc}") from exc


__all__ = ["SIGNATURE_LENGTH", "Signer", "verify_signature"]
