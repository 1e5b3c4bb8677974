"""
aiohttp transport with transparent SafeChat envelope encryption.

Wraps one logical request/response exchange:
- Encrypts request bodies when an encryption key is configured
- Marks encrypted requests with ``X-Encrypted: true``
- Decrypts responses the server chose to encrypt (read from the response's
  own ``X-Encrypted`` header, never assumed)
- Maps failures to the safechat exception hierarchy

Usage:
    config = ClientConfig(api_key="sc_live_...", encryption_key=key_b64)
    async with Transport(config) as transport:
        result = await transport.send("POST", "/v1/scan", {"text": "hello"})

Outside ``async with`` every call opens and closes its own session.
"""

import asyncio
import contextlib
import json as json_module
import types
from collections.abc import AsyncIterator, Mapping
from http import HTTPStatus
from typing import Any

import aiohttp
from typing_extensions import Self

from safechat._logging import get_logger
from safechat.config import ClientConfig
from safechat.constants import HEADER_API_KEY, JSON_CONTENT_TYPE
from safechat.crypto import open_envelope, seal
from safechat.exceptions import (
    InvalidResponseError,
    RequestFailedError,
    RequestTimeoutError,
    UnexpectedEncryptionError,
)
from safechat.headers import is_encrypted, signal_headers

__all__ = [
    "Transport",
    "dump_json",
]

_logger = get_logger(__name__)


def dump_json(value: Any) -> bytes:
    """Serialize to compact UTF-8 JSON (same bytes as JavaScript's JSON.stringify)."""
    # NaN and Infinity are not JSON; the server would reject them
    return json_module.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def _is_success(status: int) -> bool:
    return HTTPStatus.OK <= status < HTTPStatus.MULTIPLE_CHOICES


def _parse_error_body(raw: bytes, reason: str | None) -> dict[str, Any]:
    """Best-effort parse of an error payload; falls back to the reason phrase."""
    try:
        parsed = json_module.loads(raw)
    except (ValueError, UnicodeDecodeError):
        parsed = None
    if isinstance(parsed, dict):
        return parsed
    return {"error": reason or ""}


class Transport:
    """
    Negotiates encryption for each request/response exchange.

    The encryption key is read-only configuration; no per-call state is kept
    on the instance, so concurrent ``send`` calls are independent.
    """

    def __init__(self, config: ClientConfig, **aiohttp_kwargs: Any) -> None:
        """
        Initialize transport.

        Args:
            config: Validated client configuration
            **aiohttp_kwargs: Additional arguments passed to aiohttp.ClientSession
        """
        self.config = config
        # config.timeout is the only deadline; disable aiohttp's 300s total / 30s connect defaults
        aiohttp_kwargs.setdefault("timeout", aiohttp.ClientTimeout(total=None))
        self._aiohttp_kwargs = aiohttp_kwargs
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        if self._session is not None:
            raise RuntimeError("Transport is already open. Use a single 'async with' block.")
        self._session = self._new_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    def _new_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(**self._aiohttp_kwargs)

    @contextlib.asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Yield the shared session, or a short-lived one outside ``async with``."""
        if self._session is not None:
            yield self._session
            return
        async with self._new_session() as session:
            yield session

    def _prepare(self, body: Any) -> tuple[dict[str, str], bytes | None]:
        """
        Build request headers and payload.

        Returns:
            Tuple of (headers, payload). Payload is None when there is no body.
        """
        headers = {
            HEADER_API_KEY: self.config.api_key,
            "Accept": JSON_CONTENT_TYPE,
        }
        if body is None:
            return (headers, None)

        headers["Content-Type"] = JSON_CONTENT_TYPE
        plaintext = dump_json(body)
        key = self.config.key
        if key is None:
            return (headers, plaintext)

        headers.update(signal_headers())
        return (headers, seal(plaintext, key))

    async def send(self, method: str, path: str, body: Any = None) -> Any:
        """
        Perform one exchange.

        Args:
            method: HTTP method
            path: API path (relative to base_url)
            body: JSON-serializable body, or None for no body

        Returns:
            Parsed JSON response (None for an empty plain body)

        Raises:
            ValueError: Body is not JSON-serializable (including NaN or Infinity)
            RequestFailedError: Non-2xx status
            RequestTimeoutError: Deadline exceeded
            UnexpectedEncryptionError: Encrypted response without a configured key
            MalformedEnvelopeError: Encrypted response is not a valid envelope
            AuthenticationFailedError: Encrypted response failed verification
            InvalidResponseError: Response body is not JSON
        """
        url = self.config.url(path)
        headers, payload = self._prepare(body)
        _logger.debug(
            "Request: method=%s url=%s body_size=%d encrypted=%s",
            method,
            url,
            len(payload) if payload is not None else 0,
            payload is not None and self.config.encrypted,
        )

        timeout = self.config.timeout
        try:
            async with asyncio.timeout(timeout) as deadline:
                async with self._session_scope() as session:
                    async with session.request(method, url, headers=headers, data=payload) as resp:
                        raw = await resp.read()
                        status = resp.status
                        reason = resp.reason
                        resp_headers = resp.headers
        except TimeoutError:
            # Only our deadline maps to RequestTimeoutError; aiohttp's own timeouts propagate
            if not deadline.expired():
                raise
            _logger.debug("Request timed out: method=%s url=%s timeout=%.3fs", method, url, timeout)
            raise RequestTimeoutError(timeout) from None

        return self._handle_response(method, url, status, reason, resp_headers, raw)

    def _handle_response(
        self,
        method: str,
        url: str,
        status: int,
        reason: str | None,
        headers: Mapping[str, str],
        raw: bytes,
    ) -> Any:
        """Apply the response side of the negotiation."""
        encrypted = is_encrypted(headers)
        _logger.debug(
            "Response: method=%s url=%s status=%d encrypted=%s size=%d",
            method,
            url,
            status,
            encrypted,
            len(raw),
        )

        if not _is_success(status):
            error_body = _parse_error_body(raw, reason)
            message = error_body.get("error") or f"HTTP {status}"
            raise RequestFailedError(str(message), status, error_body)

        if not encrypted:
            if not raw:
                return None
            return self._parse_json(raw, status, "Response body is not valid JSON")

        key = self.config.key
        if key is None:
            _logger.debug("Encrypted response without key: method=%s url=%s", method, url)
            raise UnexpectedEncryptionError(status)

        plaintext = open_envelope(raw, key)
        return self._parse_json(plaintext, status, "Decrypted response is not valid JSON")

    def _parse_json(self, data: bytes, status: int, message: str) -> Any:
        try:
            return json_module.loads(data)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidResponseError(message, status) from e
