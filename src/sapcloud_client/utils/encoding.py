import base64
import binascii

from ..exceptions import FormatError


def b64e(data: bytes) -> str:
    """Standard base64 encoding with padding, as used on the wire"""
    return base64.b64encode(data).decode("ascii")


def b64d(value: str, *, what: str = "value") -> bytes:
    """Strict standard base64 decode; anything malformed is a :class:`FormatError`"""
    try:
        return base64.b64decode(value.strip().encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise FormatError(f"Invalid base64 in {what}") from exc
