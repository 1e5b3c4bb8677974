"""
SafeChat Cloud API client.

Prompt injection detection, canary tokens and message wrapping. Every
operation is one ``Transport.send`` call; end-to-end encryption is applied
transparently when an encryption key is configured.

Usage:
    async with SafeChat(api_key="sc_live_...") as sc:
        result = await sc.scan("some user message")
        if not result["safe"]:
            print("Blocked:", result["flags"])
"""

import types
from typing import Any, cast
from urllib.parse import quote

from typing_extensions import Self

from safechat.config import ClientConfig
from safechat.constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from safechat.models import (
    CanaryCheckResult,
    CanaryToken,
    CreateKeyResult,
    FileScanResult,
    KeyList,
    PlanResult,
    RevokeResult,
    ScanResult,
    StatsResult,
    UsageResult,
    WrapResult,
)
from safechat.transport import Transport

__all__ = [
    "SafeChat",
]


def _compact(**fields: Any) -> dict[str, Any]:
    """Drop unset (None) fields so they are omitted from the JSON body."""
    return {name: value for name, value in fields.items() if value is not None}


class SafeChat:
    """
    Client for the SafeChat Cloud REST API.

    Can be used directly (one HTTP session per call) or as an async context
    manager (one shared session).
    """

    def __init__(
        self,
        api_key: str,
        *,
        encryption_key: bytes | str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        **aiohttp_kwargs: Any,
    ) -> None:
        """
        Initialize client.

        Args:
            api_key: API key from the SafeChat dashboard (starts with sc_)
            encryption_key: AES-256 key, raw 32 bytes or base64 (from dashboard).
                Enables end-to-end encryption.
            base_url: API base URL
            timeout: Per-request deadline in seconds
            **aiohttp_kwargs: Additional arguments passed to aiohttp.ClientSession

        Raises:
            ConfigError: If api_key or base_url is invalid
            InvalidKeyLengthError: If encryption_key is not 32 bytes
        """
        self.config = ClientConfig(
            api_key=api_key,
            encryption_key=encryption_key,
            base_url=base_url,
            timeout=timeout,
        )
        self._transport = Transport(self.config, **aiohttp_kwargs)

    @classmethod
    def from_env(cls, **aiohttp_kwargs: Any) -> "SafeChat":
        """Create a client from SAFECHAT_* environment variables."""
        config = ClientConfig.from_env()
        return cls(
            config.api_key,
            encryption_key=config.key,
            base_url=config.base_url,
            timeout=config.timeout,
            **aiohttp_kwargs,
        )

    async def __aenter__(self) -> Self:
        await self._transport.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self._transport.__aexit__(exc_type, exc_val, exc_tb)

    async def request(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        """Send a raw API request (for endpoints without a dedicated method)."""
        return await self._transport.send(method, path, body)

    # === Core scanning ===

    async def scan(self, text: str) -> ScanResult:
        """Scan text for prompt injection attacks."""
        return cast(ScanResult, await self.request("POST", "/v1/scan", {"text": text}))

    async def scan_file(self, filename: str, metadata: dict[str, str | int | float] | None = None) -> FileScanResult:
        """Scan a filename (and optional metadata) for injection attempts."""
        body = _compact(filename=filename, metadata=metadata)
        return cast(FileScanResult, await self.request("POST", "/v1/scan/file", body))

    async def wrap(
        self,
        text: str,
        *,
        role: str | None = None,
        job_id: str | None = None,
        session_id: str | None = None,
    ) -> WrapResult:
        """Scan and wrap a message with Spotlighting delimiters."""
        body = _compact(text=text, role=role, jobId=job_id, sessionId=session_id)
        return cast(WrapResult, await self.request("POST", "/v1/wrap", body))

    # === Canary tokens ===

    async def create_canary(self, session_id: str) -> CanaryToken:
        """Create a canary token for leak detection in a session."""
        return cast(CanaryToken, await self.request("POST", "/v1/canary/create", {"sessionId": session_id}))

    async def check_canary(self, text: str, session_id: str | None = None) -> CanaryCheckResult:
        """Check if agent output contains leaked canary tokens."""
        body = _compact(text=text, sessionId=session_id)
        return cast(CanaryCheckResult, await self.request("POST", "/v1/canary/check", body))

    # === Account ===

    async def usage(self) -> UsageResult:
        """Get current usage stats."""
        return cast(UsageResult, await self.request("GET", "/v1/usage"))

    async def stats(self) -> StatsResult:
        """Get monitoring statistics."""
        return cast(StatsResult, await self.request("GET", "/v1/stats"))

    async def plan(self) -> PlanResult:
        """Get current plan details."""
        return cast(PlanResult, await self.request("GET", "/v1/plan"))

    async def list_keys(self) -> KeyList:
        """List all API keys for this tenant."""
        return cast(KeyList, await self.request("GET", "/v1/keys"))

    async def create_key(self, name: str | None = None) -> CreateKeyResult:
        """Create a new API key."""
        return cast(CreateKeyResult, await self.request("POST", "/v1/keys", _compact(name=name)))

    async def revoke_key(self, key_id: str) -> RevokeResult:
        """Revoke an API key by ID."""
        return cast(RevokeResult, await self.request("DELETE", f"/v1/keys/{quote(key_id, safe='')}"))
