"""
Exception hierarchy for safechat.

All errors inherit from SafeChatError; envelope codec errors additionally
inherit from CryptoError for easy catching.
"""

from typing import Any


class SafeChatError(Exception):
    """Base exception for all safechat errors."""


class ConfigError(SafeChatError, ValueError):
    """Client configuration is invalid (e.g. missing API key, bad base URL)."""


class CryptoError(SafeChatError):
    """Base exception for all envelope codec errors."""


class InvalidKeyLengthError(CryptoError, ValueError):
    """Encryption key is not exactly 32 bytes.

    Fatal: raised at construction or first use, never retried.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid encryption key: expected {expected} bytes (256-bit), got {actual}")


class MalformedEnvelopeError(CryptoError):
    """Transport-form envelope is structurally invalid.

    Possible causes:
    - Body is not a JSON object
    - Missing or non-string iv/tag/data field
    - Invalid base64
    - Wrong nonce or tag length

    Indicates a protocol mismatch, not a transient failure.
    """


class AuthenticationFailedError(CryptoError):
    """Envelope tag verification failed.

    Possible causes:
    - Wrong key
    - Tampered or corrupted ciphertext
    - Tampered or corrupted tag
    - Mismatched nonce
    """

    def __init__(self) -> None:
        # Same message for every cause to avoid a decryption oracle
        super().__init__("Envelope authentication failed")


class UnexpectedEncryptionError(SafeChatError):
    """Server sent an encrypted response but no encryption key is configured.

    Signals key-configuration drift between client and server.
    """

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(
            f"Server returned an encrypted response (HTTP {status}) but no encryption key is configured"
        )


class RequestFailedError(SafeChatError):
    """Server answered with a non-success status.

    Attributes:
        status: HTTP status code
        body: Parsed error payload, or ``{"error": <reason>}`` if the body was not JSON
    """

    def __init__(self, message: str, status: int, body: dict[str, Any]) -> None:
        self.status = status
        self.body = body
        super().__init__(message)


class RequestTimeoutError(SafeChatError, TimeoutError):
    """Call did not complete within the configured deadline.

    Safe to retry at the caller's discretion.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"SafeChat request timed out after {timeout:g}s")


class InvalidResponseError(SafeChatError):
    """Successful response body (or decrypted plaintext) is not valid JSON."""

    def __init__(self, message: str, status: int) -> None:
        self.status = status
        super().__init__(message)
