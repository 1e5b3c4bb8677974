"""
Response shapes of the SafeChat Cloud REST API.

These are TypedDicts: results are the plain dicts decoded from JSON, the
types only document what the server returns.
"""

from typing import Any, Literal, TypedDict

from typing_extensions import NotRequired

__all__ = [
    "ApiKeyInfo",
    "CanaryCheckResult",
    "CanaryToken",
    "Classification",
    "CreateKeyResult",
    "ErrorBody",
    "ErrorFieldDetail",
    "FileScanDetails",
    "FileScanResult",
    "KeyList",
    "LayerResult",
    "PlanLimits",
    "PlanResult",
    "RevokeResult",
    "ScanResult",
    "StatsResult",
    "UsageResult",
    "WrapResult",
    "WrappedMessage",
    "WrappedMetadata",
]

Classification = Literal["safe", "suspicious", "likely_injection"]


# === Scan ===


class LayerResult(TypedDict):
    layer: str
    score: float
    flags: list[str]
    details: NotRequired[dict[str, Any]]


class ScanResult(TypedDict):
    safe: bool
    score: float
    classification: Classification
    flags: list[str]
    layers: list[LayerResult]
    scannedAt: int


class FileScanDetails(TypedDict):
    pathTraversal: bool
    nullBytes: bool
    unicodeRLO: bool
    injectionInName: bool
    suspiciousMetadata: bool


class FileScanResult(TypedDict):
    safe: bool
    sanitizedFilename: str
    flags: list[str]
    details: FileScanDetails


# === Wrap ===


class WrappedMetadata(TypedDict):
    role: str
    safetyScore: float
    classification: Classification
    timestamp: str
    jobId: NotRequired[str]


class WrappedMessage(TypedDict):
    """Message wrapped with Spotlighting delimiters."""

    formatted: str
    metadata: WrappedMetadata


class WrapResult(TypedDict):
    scan: ScanResult
    wrapped: WrappedMessage


# === Canary ===


class CanaryToken(TypedDict):
    token: str
    sessionId: str
    createdAt: int
    injectionText: str


class CanaryCheckResult(TypedDict):
    leaked: bool
    token: NotRequired[str]
    sessionId: NotRequired[str]


# === Usage & plan ===


class UsageResult(TypedDict):
    period: str
    scan_count: int
    block_count: int
    limit: int | Literal["unlimited"]
    remaining: int | Literal["unlimited"]


class StatsResult(TypedDict):
    plan: str
    period: str
    scan_count: int
    block_count: int
    limit: int | Literal["unlimited"]


class PlanLimits(TypedDict):
    # None when the plan is unlimited
    callsPerMonth: int | None
    ratePerMinute: int


class PlanResult(TypedDict):
    plan: str
    limits: PlanLimits


# === Keys ===


class ApiKeyInfo(TypedDict):
    id: str
    key_prefix: str
    name: str | None
    revoked_at: str | None
    created_at: str
    last_used_at: str | None


class KeyList(TypedDict):
    keys: list[ApiKeyInfo]


class CreateKeyResult(TypedDict):
    id: str
    key: str
    prefix: str


class RevokeResult(TypedDict):
    revoked: bool


# === Errors ===


class ErrorFieldDetail(TypedDict):
    field: str
    message: str


class ErrorBody(TypedDict):
    """Payload of RequestFailedError.body."""

    error: str
    details: NotRequired[list[ErrorFieldDetail]]
    limit: NotRequired[int | str]
    plan: NotRequired[str]
    message: NotRequired[str]
