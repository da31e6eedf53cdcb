"""Identity key material, wire encoding and signing."""
from .keystore import KeyStore
from .signer import SIGNATURE_LENGTH, Signer, verify_signature
from .wire import KEY_TYPE, PortableKey, encode_public_key, parse_public_key

__all__ = [
    "KEY_TYPE",
    "KeyStore",
    "PortableKey",
    "SIGNATURE_LENGTH",
    "Signer",
    "encode_public_key",
    "parse_public_key",
    "verify_signature",
]
