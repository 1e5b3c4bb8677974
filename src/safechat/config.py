"""
Client configuration.

ClientConfig is validated eagerly and atomically: an invalid option fails
construction, never the first request.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlparse

from safechat.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_ENCRYPTION_KEY,
    ENV_TIMEOUT,
)
from safechat.crypto import load_key
from safechat.exceptions import ConfigError

__all__ = [
    "ClientConfig",
]


@dataclass(frozen=True)
class ClientConfig:
    """Validated, immutable options for one client instance.

    Attributes:
        api_key: SafeChat API key (sent as X-API-Key)
        encryption_key: Raw 32-byte key, or its base64 encoding. When set,
            request bodies are encrypted and encrypted responses decrypted.
        base_url: API base URL, trailing slashes removed
        timeout: Per-call deadline in seconds
    """

    api_key: str
    encryption_key: bytes | str | None = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigError("api_key is required")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"base_url must be an http(s) URL, got {self.base_url!r}")

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, int | float) or self.timeout <= 0:
            raise ConfigError(f"timeout must be a positive number of seconds, got {self.timeout!r}")

        # Normalize after validation; frozen dataclass needs object.__setattr__
        if self.encryption_key is not None:
            object.__setattr__(self, "encryption_key", load_key(self.encryption_key))
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "timeout", float(self.timeout))

    @property
    def key(self) -> bytes | None:
        """Raw 32-byte encryption key, or None if encryption is disabled."""
        # __post_init__ has already converted str keys to bytes
        return self.encryption_key  # type: ignore[return-value]

    @property
    def encrypted(self) -> bool:
        """Whether end-to-end encryption is enabled."""
        return self.encryption_key is not None

    def url(self, path: str) -> str:
        """Resolve an API path against the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """
        Build configuration from environment variables.

        Reads SAFECHAT_API_KEY (required), SAFECHAT_ENCRYPTION_KEY,
        SAFECHAT_BASE_URL and SAFECHAT_TIMEOUT (seconds).

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigError: If a value is missing or invalid
        """
        env = os.environ if environ is None else environ

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get(ENV_TIMEOUT)
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigError(f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}") from e

        return cls(
            api_key=env.get(ENV_API_KEY, ""),
            encryption_key=env.get(ENV_ENCRYPTION_KEY) or None,
            base_url=env.get(ENV_BASE_URL) or DEFAULT_BASE_URL,
            timeout=timeout,
        )
