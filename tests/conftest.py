"""Shared test fixtures for safechat tests."""

import asyncio
import base64
import contextlib
import logging
import os
import signal
import socket
import subprocess
import sys
import tempfile
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import aiohttp
import pytest
import pytest_asyncio

# Enable safechat debug logging during tests
logging.getLogger("safechat").setLevel(logging.DEBUG)
logging.getLogger("safechat").addHandler(logging.StreamHandler())

REPO_ROOT = Path(__file__).resolve().parent.parent


# === Key Fixtures ===


@pytest.fixture(scope="session")
def encryption_key() -> bytes:
    """Shared AES-256 key. Fixed value for deterministic tests."""
    return b"\xab" * 32


@pytest.fixture(scope="session")
def encryption_key_b64(encryption_key: bytes) -> str:
    """Same key in the base64 form the dashboard hands out."""
    return base64.b64encode(encryption_key).decode("ascii")


@pytest.fixture
def wrong_key() -> bytes:
    """A valid-length key that differs from encryption_key."""
    return b"\xcd" * 32


@pytest.fixture(scope="session")
def api_key() -> str:
    return "sc_test_123"


# === E2E Server Fixtures ===


@dataclass
class E2EServer:
    """E2E test server info with log capture."""

    host: str
    port: int
    _log_file: IO[bytes]

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def get_logs(self) -> str:
        """Read captured server logs."""
        self._log_file.seek(0)
        return self._log_file.read().decode("utf-8", errors="replace")


def get_free_port() -> int:
    """Get a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        return s.getsockname()[1]


async def wait_for_server(host: str, port: int, timeout: float = 10.0) -> None:
    """Wait for server to be ready."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(f"http://{host}:{port}/health") as resp:
                    if resp.status == 200:
                        return
        except (aiohttp.ClientError, OSError):
            pass
        await asyncio.sleep(0.1)
    raise TimeoutError(f"Server not ready after {timeout}s")


# Server module path for granian
TEST_SERVER_MODULE = "tests.e2e_server:app"


async def _start_granian_server(encryption_key: bytes | None) -> AsyncIterator[E2EServer]:
    """Start granian server running the SafeChat test app.

    Args:
        encryption_key: Server-side key, or None for a tenant without encryption

    Yields:
        E2EServer with host, port, and log access
    """
    port = get_free_port()
    host = "127.0.0.1"

    env = {
        **dict(os.environ),
        "PYTHONPATH": os.pathsep.join(filter(None, [str(REPO_ROOT), os.environ.get("PYTHONPATH")])),
    }
    env.pop("TEST_ENCRYPTION_KEY", None)
    if encryption_key is not None:
        env["TEST_ENCRYPTION_KEY"] = base64.b64encode(encryption_key).decode("ascii")

    # Capture server logs to temp file for per-test debugging
    # Note: intentionally not using context manager - file must stay open across yield
    log_file = tempfile.TemporaryFile(mode="w+b")

    # Use start_new_session=True to create a new process group.
    # This allows us to kill granian and all its child workers together.
    proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "granian",
            TEST_SERVER_MODULE,
            "--interface",
            "asgi",
            "--host",
            host,
            "--port",
            str(port),
            "--workers",
            "1",
            "--log-level",
            "info",
        ],
        cwd=REPO_ROOT,
        env=env,
        stdout=log_file,
        stderr=log_file,
        start_new_session=True,
    )

    def _kill_process_group(sig: int) -> None:
        """Kill the entire process group (granian + workers)."""
        with contextlib.suppress(ProcessLookupError, OSError):
            os.killpg(os.getpgid(proc.pid), sig)

    try:
        await wait_for_server(host, port)
        yield E2EServer(host=host, port=port, _log_file=log_file)
    finally:
        # Kill entire process group to avoid orphaned workers
        _kill_process_group(signal.SIGTERM)
        try:
            proc.wait(timeout=5.0)
        except subprocess.TimeoutExpired:
            _kill_process_group(signal.SIGKILL)
            proc.wait()
        log_file.close()


def _dump_server_logs(server: E2EServer, request: pytest.FixtureRequest, label: str) -> None:
    logs = server.get_logs()
    if logs.strip():
        test_name: str = request.node.name  # type: ignore[attr-defined]
        sys.stdout.write(f"\n{'=' * 60}\n")
        sys.stdout.write(f"Server logs for: {test_name}{label}\n")
        sys.stdout.write(f"{'=' * 60}\n")
        sys.stdout.write(logs)
        sys.stdout.write(f"\n{'=' * 60}\n\n")
        sys.stdout.flush()


@pytest_asyncio.fixture
async def granian_server(
    encryption_key: bytes,
    request: pytest.FixtureRequest,
) -> AsyncIterator[E2EServer]:
    """Start granian server with end-to-end encryption enabled.

    Function-scoped: each test gets its own server with isolated logs.
    Server logs are printed to console after each test.
    """
    async for server in _start_granian_server(encryption_key):
        yield server
        _dump_server_logs(server, request, "")


@pytest_asyncio.fixture
async def granian_server_plain(request: pytest.FixtureRequest) -> AsyncIterator[E2EServer]:
    """Start granian server for a tenant without end-to-end encryption.

    Used for client/server key mismatch tests.
    """
    async for server in _start_granian_server(None):
        yield server
        _dump_server_logs(server, request, " (plain)")
