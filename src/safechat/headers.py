"""
Encoding helpers for the encrypted transport.

Envelope fields use standard base64 (RFC 4648 §4) with padding, the
encoding the SafeChat server emits and expects.
"""

import base64
import binascii
from collections.abc import Mapping

from safechat.constants import HEADER_ENCRYPTED, SIGNAL_TRUE

__all__ = [
    "HEADER_ENCRYPTED",
    "b64_decode",
    "b64_encode",
    "is_encrypted",
    "signal_headers",
]


def b64_encode(data: bytes) -> str:
    """
    Encode bytes to a standard base64 string (with padding).

    Args:
        data: Raw bytes to encode

    Returns:
        base64 encoded ASCII string
    """
    return base64.b64encode(data).decode("ascii")


def b64_decode(s: str) -> bytes:
    """
    Decode a standard base64 string.

    Strict: characters outside the base64 alphabet and bad padding are
    rejected rather than silently discarded.

    Args:
        s: base64 encoded string

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the input is not valid base64
    """
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64: {e}") from e


def signal_headers() -> dict[str, str]:
    """Headers marking an outbound body as an envelope."""
    return {HEADER_ENCRYPTED: SIGNAL_TRUE}


def is_encrypted(headers: Mapping[str, str]) -> bool:
    """
    Check whether a response carries the encryption signal.

    Args:
        headers: Response headers (aiohttp's CIMultiDictProxy is case-insensitive)

    Returns:
        True if X-Encrypted is "true" (case-insensitive)
    """
    value = headers.get(HEADER_ENCRYPTED)
    if value is None:
        return False
    return value.strip().lower() == SIGNAL_TRUE
