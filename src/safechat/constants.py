"""
Wire constants for the SafeChat encrypted transport.

These values are a compatibility contract with SafeChat Cloud's own
AES-256-GCM implementation. Changing any of them breaks interop.
"""

from typing import Final

# =============================================================================
# AES-256-GCM
# =============================================================================

AES_256_GCM_KEY_SIZE: Final[int] = 32
"""Key size in bytes (256-bit)."""

AES_GCM_NONCE_SIZE: Final[int] = 12
"""Nonce (IV) size in bytes (96-bit). Fresh random value per encryption."""

AES_GCM_TAG_SIZE: Final[int] = 16
"""Authentication tag size in bytes (128-bit)."""

# =============================================================================
# Envelope field names
# =============================================================================

ENVELOPE_FIELD_IV: Final[str] = "iv"
ENVELOPE_FIELD_TAG: Final[str] = "tag"
ENVELOPE_FIELD_DATA: Final[str] = "data"

ENVELOPE_FIELDS: Final[tuple[str, str, str]] = (
    ENVELOPE_FIELD_IV,
    ENVELOPE_FIELD_TAG,
    ENVELOPE_FIELD_DATA,
)
"""Field order on the wire: iv, tag, data."""

# =============================================================================
# HTTP
# =============================================================================

HEADER_ENCRYPTED: Final[str] = "X-Encrypted"
"""Signal header: body is an envelope, not plain JSON."""

HEADER_API_KEY: Final[str] = "X-API-Key"

SIGNAL_TRUE: Final[str] = "true"

JSON_CONTENT_TYPE: Final[str] = "application/json"

DEFAULT_BASE_URL: Final[str] = "https://safechat-api.autobb.app"

DEFAULT_TIMEOUT: Final[float] = 30.0
"""Per-call deadline in seconds."""

# =============================================================================
# Environment
# =============================================================================

ENV_API_KEY: Final[str] = "SAFECHAT_API_KEY"
ENV_ENCRYPTION_KEY: Final[str] = "SAFECHAT_ENCRYPTION_KEY"
ENV_BASE_URL: Final[str] = "SAFECHAT_BASE_URL"
ENV_TIMEOUT: Final[str] = "SAFECHAT_TIMEOUT"
