"""JSON utilities module.

This module provides a unified interface for JSON operations so that every
component serializes headers, payloads and disclosures the same way.

Output is compact (no whitespace between tokens) and keeps non-ASCII
characters as UTF-8 rather than ``\\u`` escapes, so multi-byte claim values
such as Japanese names are encoded once, by the base64url layer.
"""

import json
from typing import Any, Union

JSONDecodeError = json.JSONDecodeError

# Compact separators, matching JavaScript's JSON.stringify
_SEPARATORS = (",", ":")


def dumps(obj: Any, sort_keys: bool = False) -> str:
    """Serialize an object to a compact JSON string.

    Args:
        obj: JSON-compatible object
        sort_keys: Whether to sort object keys (used for thumbprints)

    Returns:
        JSON text

    Raises:
        ValueError: If the object contains NaN or infinite floats
    """
    return json.dumps(obj, separators=_SEPARATORS, ensure_ascii=False, sort_keys=sort_keys, allow_nan=False)


def dumps_bytes(obj: Any, sort_keys: bool = False) -> bytes:
    """Serialize an object to UTF-8 encoded compact JSON."""
    return dumps(obj, sort_keys=sort_keys).encode("utf-8")


def loads(data: Union[str, bytes]) -> Any:
    """Parse JSON text or UTF-8 bytes.

    Args:
        data: JSON document

    Returns:
        The decoded object

    Raises:
        JSONDecodeError: If the data is not valid JSON
        UnicodeDecodeError: If bytes are not valid UTF-8
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)
