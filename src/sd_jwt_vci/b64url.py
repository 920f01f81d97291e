"""Base64url codec without padding (RFC 4648 section 5)."""

import base64
import binascii
import re
from typing import Any, Union

from . import json_utils
from .exceptions import DecodeError

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: Union[bytes, str]) -> str:
    """Encode bytes to base64url without padding.

    Text is encoded as its UTF-8 byte sequence.

    Args:
        data: Bytes or text to encode

    Returns:
        URL-safe base64 string with ``=`` padding stripped
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: Union[str, bytes]) -> bytes:
    """Decode padding-free base64url text.

    Args:
        text: Base64url string

    Returns:
        Decoded bytes

    Raises:
        DecodeError: If the text uses characters outside the base64url
            alphabet or has a length that no padding can repair
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError("Base64url input is not ASCII") from e

    if not _ALPHABET.fullmatch(text):
        raise DecodeError("Invalid character in base64url input")
    if len(text) % 4 == 1:
        raise DecodeError(f"Invalid base64url length: {len(text)}")

    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64url input: {e}") from e


def encode_json(obj: Any) -> str:
    """Serialize an object to compact JSON and base64url-encode it."""
    return encode(json_utils.dumps_bytes(obj))


def decode_json(text: str) -> Any:
    """Base64url-decode text and parse it as UTF-8 JSON.

    Raises:
        DecodeError: If either the base64url or the JSON layer is invalid
    """
    raw = decode(text)
    try:
        return json_utils.loads(raw)
    except (json_utils.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid JSON: {e}") from e
