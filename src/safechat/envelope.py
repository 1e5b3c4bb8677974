"""
Wire format for SafeChat encrypted envelopes.

Envelope format (sent as the HTTP body, Content-Type: application/json):

    {"iv": "<base64 12B nonce>", "tag": "<base64 16B tag>", "data": "<base64 ciphertext>"}

Each field is base64 encoded independently. The ciphertext has the same
length as the plaintext (GCM is a stream mode, no padding). The presence of
an envelope is signalled out-of-band by the ``X-Encrypted: true`` header.
"""

import json
from dataclasses import dataclass
from typing import Any

from safechat.constants import (
    AES_GCM_NONCE_SIZE,
    AES_GCM_TAG_SIZE,
    ENVELOPE_FIELD_DATA,
    ENVELOPE_FIELD_IV,
    ENVELOPE_FIELD_TAG,
    ENVELOPE_FIELDS,
)
from safechat.exceptions import MalformedEnvelopeError
from safechat.headers import b64_decode, b64_encode

__all__ = [
    "Envelope",
    "decode_envelope",
    "encode_envelope",
]


@dataclass(frozen=True)
class Envelope:
    """Encrypted representation of one plaintext payload.

    Only produced by ``safechat.crypto.encrypt`` or parsed from the wire.
    """

    iv: bytes
    tag: bytes
    data: bytes

    def to_dict(self) -> dict[str, str]:
        """Transport form: three base64 fields in wire order."""
        return {
            ENVELOPE_FIELD_IV: b64_encode(self.iv),
            ENVELOPE_FIELD_TAG: b64_encode(self.tag),
            ENVELOPE_FIELD_DATA: b64_encode(self.data),
        }

    @classmethod
    def from_dict(cls, obj: Any) -> "Envelope":
        """
        Parse the transport form.

        Args:
            obj: Decoded JSON value

        Returns:
            Parsed Envelope

        Raises:
            MalformedEnvelopeError: If a field is missing, not a string, not
                valid base64, or the nonce/tag has the wrong length
        """
        if not isinstance(obj, dict):
            raise MalformedEnvelopeError(f"Envelope must be a JSON object, got {type(obj).__name__}")

        fields: dict[str, bytes] = {}
        for name in ENVELOPE_FIELDS:
            if name not in obj:
                raise MalformedEnvelopeError(f"Envelope missing field: {name!r}")
            value = obj[name]
            if not isinstance(value, str):
                raise MalformedEnvelopeError(f"Envelope field {name!r} must be a string")
            try:
                fields[name] = b64_decode(value)
            except ValueError as e:
                raise MalformedEnvelopeError(f"Envelope field {name!r} is not valid base64") from e

        iv = fields[ENVELOPE_FIELD_IV]
        tag = fields[ENVELOPE_FIELD_TAG]
        if len(iv) != AES_GCM_NONCE_SIZE:
            raise MalformedEnvelopeError(f"Invalid nonce length: {len(iv)} bytes (expected {AES_GCM_NONCE_SIZE})")
        if len(tag) != AES_GCM_TAG_SIZE:
            raise MalformedEnvelopeError(f"Invalid tag length: {len(tag)} bytes (expected {AES_GCM_TAG_SIZE})")

        return cls(iv=iv, tag=tag, data=fields[ENVELOPE_FIELD_DATA])


def encode_envelope(envelope: Envelope) -> bytes:
    """
    Serialize an envelope for transmission.

    Args:
        envelope: Envelope from ``encrypt``

    Returns:
        Compact JSON bytes
    """
    return json.dumps(envelope.to_dict(), separators=(",", ":")).encode("ascii")


def decode_envelope(body: bytes) -> Envelope:
    """
    Parse a transmitted envelope.

    Args:
        body: Raw HTTP body

    Returns:
        Parsed Envelope (not yet authenticated)

    Raises:
        MalformedEnvelopeError: If the body is not a well-formed envelope
    """
    try:
        obj = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedEnvelopeError("Envelope body is not valid JSON") from e
    return Envelope.from_dict(obj)
