"""Text/byte codecs used around the ciphers. Every failure is an EncodingError."""
from __future__ import annotations
import base64
import binascii

from ..errors import EncodingError


def _to_bytes(data: str | bytes) -> bytes:
    return data.encode("ascii") if isinstance(data, str) else data


def b64decode(data: str | bytes) -> bytes:
    """Standard or url-safe base64, padding optional."""
    raw = _to_bytes(data).strip().replace(b"-", b"+").replace(b"_", b"/").rstrip(b"=")
    raw += b"=" * (-len(raw) % 4)
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"invalid base64: {e}") from e


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64url_encode(data: bytes) -> str:
    """base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def hex_decode(data: str) -> bytes:
    try:
        return bytes.fromhex(data.strip())
    except ValueError as e:
        raise EncodingError(f"invalid hex: {e}") from e


def utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"invalid utf-8: {e}") from e
