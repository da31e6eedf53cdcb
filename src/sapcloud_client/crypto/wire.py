"""SSH wire-format helpers for Ed25519 public keys.

A wire string is a 4-byte big-endian length followed by that many raw bytes.
The portable public-key line is::

    ssh-ed25519 <base64(string("ssh-ed25519") ++ string(key))> <comment>
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from ..exceptions import FormatError
from ..utils.encoding import b64d, b64e

KEY_TYPE = "ssh-ed25519"
ED25519_KEY_LENGTH = 32

_LENGTH = struct.Struct(">I")


@dataclass(frozen=True, slots=True)
class PortableKey:
    key_type: str
    key: bytes
    comment: str = ""


def encode_string(data: bytes) -> bytes:
    return _LENGTH.pack(len(data)) + data


def decode_string(buffer: bytes, offset: int = 0) -> tuple[bytes, int]:
    """Read one wire string at ``offset``; return it with the offset just past it."""
    end = offset + _LENGTH.size
    if offset < 0 or end > len(buffer):
        raise FormatError("Truncated wire string length")
    (length,) = _LENGTH.unpack_from(buffer, offset)
    if end + length > len(buffer):
        raise FormatError(f"Truncated wire string: need {length} bytes, have {len(buffer) - end}")
    return bytes(buffer[end:end + length]), end + length


def encode_key_blob(key: bytes) -> bytes:
    if len(key) != ED25519_KEY_LENGTH:
        raise FormatError(f"Ed25519 public key must be {ED25519_KEY_LENGTH} bytes, got {len(key)}")
    return encode_string(KEY_TYPE.encode("ascii")) + encode_string(key)


def decode_key_blob(blob: bytes) -> bytes:
    key_type, offset = decode_string(blob)
    if key_type != KEY_TYPE.encode("ascii"):
        raise FormatError(f"Unsupported key type: {key_type.decode('ascii', 'replace')}")
    key, offset = decode_string(blob, offset)
    if len(key) != ED25519_KEY_LENGTH:
        raise FormatError(f"Invalid Ed25519 public key size: {len(key)}")
    if offset != len(blob):
        raise FormatError("Trailing data after Ed25519 public key")
    return key


def encode_public_key(key: bytes, comment: str = "") -> str:
    line = f"{KEY_TYPE} {b64e(encode_key_blob(key))}"
    return f"{line} {comment}" if comment else line


def parse_public_key(line: str) -> PortableKey:
    text = line.strip()
    if not text.startswith(KEY_TYPE + " "):
        raise FormatError(f"Unsupported public key format (expected {KEY_TYPE})")
    parts = text.split(None, 2)
    if len(parts) < 2:
        raise FormatError("Invalid SSH public key format")
    key = decode_key_blob(b64d(parts[1], what="public key blob"))
    comment = parts[2] if len(parts) > 2 else ""
    return PortableKey(key_type=KEY_TYPE, key=key, comment=comment)


__all__ = [
    "ED25519_KEY_LENGTH",
    "KEY_TYPE",
    "PortableKey",
    "decode_key_blob",
    "decode_string",
    "encode_key_blob",
    "encode_public_key",
    "encode_string",
    "parse_public_key",
]
