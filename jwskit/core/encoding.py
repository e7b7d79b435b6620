"""Base64url (RFC 7515 section 2) and JSON encoding helpers."""

import base64
import binascii
import json
import re
from typing import Any

from jwskit.core.errors import InvalidEncodingError

_B64URL_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """Base64url decode with padding restoration.

    Padding characters are not accepted on input, nor is anything outside
    the URL-safe alphabet.

    Raises:
        InvalidEncodingError: If ``data`` is not valid unpadded base64url
    """
    if not isinstance(data, str):
        raise InvalidEncodingError(f"Expected str, got {type(data).__name__}")

    if not _B64URL_ALPHABET.fullmatch(data):
        raise InvalidEncodingError("Illegal character in base64url data")

    # A single trailing sextet cannot encode a whole byte
    if len(data) % 4 == 1:
        raise InvalidEncodingError(f"Illegal base64url data length: {len(data)}")

    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding

    try:
        return base64.urlsafe_b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"Invalid base64url data: {e}") from e


def int_to_bytes(value: int, length: int | None = None) -> bytes:
    """Big-endian bytes of ``value``, minimal or left-zero-filled to ``length``."""
    if length is None:
        length = (value.bit_length() + 7) // 8
    return value.to_bytes(length, "big")


def bytes_to_int(data: bytes) -> int:
    """Big-endian unsigned integer from ``data``."""
    return int.from_bytes(data, "big")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def json_dumps(value: Any) -> bytes:
    """Compact JSON encoding as used in JOSE headers and payloads."""
    return json.dumps(value, separators=(",", ":"), allow_nan=False).encode()


def json_loads(data: bytes | str) -> Any:
    """Strict JSON decoding; NaN and Infinity are rejected.

    Raises:
        ValueError: If ``data`` is not valid JSON
    """
    return json.loads(data, parse_constant=_reject_constant)
