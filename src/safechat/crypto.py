"""
AES-256-GCM envelope codec.

Encrypts a plaintext into an Envelope under a 32-byte key and back. Matches
SafeChat Cloud's server-side scheme exactly:

- 96-bit nonce, fresh from the OS CSPRNG on every call
- 128-bit tag, sent separately from the ciphertext
- no associated data, no padding

Stateless: no module-level caches, safe to call concurrently.
"""

import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from safechat.constants import AES_256_GCM_KEY_SIZE, AES_GCM_NONCE_SIZE, AES_GCM_TAG_SIZE
from safechat.envelope import Envelope, decode_envelope, encode_envelope
from safechat.exceptions import AuthenticationFailedError, ConfigError, InvalidKeyLengthError
from safechat.headers import b64_decode

__all__ = [
    "decrypt",
    "encrypt",
    "load_key",
    "open_envelope",
    "seal",
    "validate_key",
]


def validate_key(key: bytes) -> None:
    """
    Check that a key is exactly 32 bytes.

    Raises:
        InvalidKeyLengthError: Reporting expected and actual lengths
    """
    if len(key) != AES_256_GCM_KEY_SIZE:
        raise InvalidKeyLengthError(expected=AES_256_GCM_KEY_SIZE, actual=len(key))


def load_key(value: bytes | str) -> bytes:
    """
    Load an encryption key from configuration.

    Args:
        value: Raw 32-byte key, or its base64 encoding (dashboard format)

    Returns:
        Raw 32-byte key

    Raises:
        ConfigError: If a string key is not valid base64
        InvalidKeyLengthError: If the key is not 32 bytes
    """
    if isinstance(value, str):
        try:
            key = b64_decode(value.strip())
        except ValueError as e:
            raise ConfigError("encryption_key must be base64 encoded") from e
    else:
        key = bytes(value)
    validate_key(key)
    return key


def encrypt(plaintext: bytes, key: bytes) -> Envelope:
    """
    Encrypt plaintext into a fresh envelope.

    Args:
        plaintext: Bytes to protect (may be empty)
        key: 32-byte AES-256 key

    Returns:
        Envelope with a new random nonce

    Raises:
        InvalidKeyLengthError: If key is not 32 bytes
    """
    validate_key(key)
    iv = secrets.token_bytes(AES_GCM_NONCE_SIZE)
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    # cryptography appends the tag: ciphertext || tag
    return Envelope(
        iv=iv,
        tag=sealed[-AES_GCM_TAG_SIZE:],
        data=sealed[:-AES_GCM_TAG_SIZE],
    )


def decrypt(envelope: Envelope, key: bytes) -> bytes:
    """
    Authenticate and decrypt an envelope.

    No plaintext is returned unless the tag verifies.

    Args:
        envelope: Envelope to open
        key: 32-byte AES-256 key

    Returns:
        Original plaintext

    Raises:
        InvalidKeyLengthError: If key is not 32 bytes
        AuthenticationFailedError: If verification fails for any reason
    """
    validate_key(key)
    try:
        return AESGCM(key).decrypt(envelope.iv, envelope.data + envelope.tag, None)
    except (InvalidTag, ValueError):
        # Suppress the cause: every failure must look the same to the caller
        raise AuthenticationFailedError() from None


def seal(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt and serialize to the JSON transport form."""
    return encode_envelope(encrypt(plaintext, key))


def open_envelope(body: bytes, key: bytes) -> bytes:
    """
    Parse a JSON transport-form envelope and decrypt it.

    Raises:
        MalformedEnvelopeError: If the body is not a well-formed envelope
        AuthenticationFailedError: If verification fails
    """
    return decrypt(decode_envelope(body), key)
