"""
SafeChat Cloud client with AES-256-GCM end-to-end encryption.

Prompt injection detection, canary tokens and message wrapping. When an
encryption key is configured, request bodies are sealed in an authenticated
envelope and encrypted responses are opened transparently.

Usage:
    from safechat import SafeChat

    async with SafeChat(api_key="sc_live_...", encryption_key=key_b64) as sc:
        result = await sc.scan("some user message")
        if not result["safe"]:
            print("Blocked:", result["flags"])

Low-level codec:
    from safechat.crypto import decrypt, encrypt

    envelope = encrypt(b'{"text":"hello"}', key)
    plaintext = decrypt(envelope, key)
"""

from safechat.client import SafeChat
from safechat.config import ClientConfig
from safechat.envelope import Envelope
from safechat.exceptions import (
    AuthenticationFailedError,
    ConfigError,
    CryptoError,
    InvalidKeyLengthError,
    InvalidResponseError,
    MalformedEnvelopeError,
    RequestFailedError,
    RequestTimeoutError,
    SafeChatError,
    UnexpectedEncryptionError,
)
from safechat.transport import Transport

__all__ = [
    # Client
    "ClientConfig",
    "Envelope",
    "SafeChat",
    "Transport",
    # Exceptions
    "AuthenticationFailedError",
    "ConfigError",
    "CryptoError",
    "InvalidKeyLengthError",
    "InvalidResponseError",
    "MalformedEnvelopeError",
    "RequestFailedError",
    "RequestTimeoutError",
    "SafeChatError",
    "UnexpectedEncryptionError",
]

__version__ = "0.1.0"
