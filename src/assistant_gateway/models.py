"""Shared request/response models."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderIdentity(str, Enum):
    """Backend identities the gateway can address."""

    AUTO = "auto"
    LOCAL_CLI = "local-cli-backed"
    HOSTED_API = "hosted-api-backed"
    OFFLINE_MOCK = "offline-mock"

    @property
    def wire_key(self) -> str:
        """Name used by the backend in health maps and ``preferredProvider``."""

        return _WIRE_KEYS[self]

    @classmethod
    def parse(cls, value: str | ProviderIdentity) -> ProviderIdentity:
        """Accept either the identity value or the backend wire key."""

        if isinstance(value, ProviderIdentity):
            return value
        normalized = value.strip().lower()
        for identity in cls:
            if normalized in (identity.value, identity.wire_key):
                return identity
        raise ValueError(f"Unknown provider identity: {value!r}")


_WIRE_KEYS: dict[ProviderIdentity, str] = {
    ProviderIdentity.AUTO: "auto",
    ProviderIdentity.LOCAL_CLI: "claude-code-sdk",
    ProviderIdentity.HOSTED_API: "anthropic-api",
    ProviderIdentity.OFFLINE_MOCK: "mock-provider",
}


class ErrorClassification(str, Enum):
    """Failure taxonomy shared by every gateway operation."""

    SETUP_REQUIRED = "setupRequired"
    AUTH_REQUIRED = "authRequired"
    RATE_LIMITED = "rateLimited"
    NETWORK_UNREACHABLE = "networkUnreachable"
    TIMED_OUT = "timedOut"
    GENERIC = "generic"


class GatewayOperation(str, Enum):
    """Operations exposed by the gateway, bound to their backend endpoint."""

    CHAT = "chat"
    ANALYZE_CODE = "analyze-code"
    GENERATE_CODE = "generate-code"
    FILE_OP = "file-op"
    ANALYZE_PROJECT = "analyze-project"
    EXECUTE_CODE = "execute-code"

    @property
    def endpoint(self) -> str:
        return _ENDPOINTS[self]


_ENDPOINTS: dict[GatewayOperation, str] = {
    GatewayOperation.CHAT: "/api/ai/chat",
    # Code analysis goes through the chat endpoint with an analysis prompt.
    GatewayOperation.ANALYZE_CODE: "/api/ai/chat",
    GatewayOperation.GENERATE_CODE: "/api/ai/generate-code",
    GatewayOperation.FILE_OP: "/api/ai/file-operation",
    GatewayOperation.ANALYZE_PROJECT: "/api/ai/analyze-project",
    GatewayOperation.EXECUTE_CODE: "/api/ai/execute-code",
}

HEALTH_ENDPOINT = "/api/health"


class ProviderStatus(BaseModel):
    """Last known availability of one provider."""

    model_config = ConfigDict(frozen=True)

    identity: ProviderIdentity
    is_available: bool
    last_error: str | None = None
    response_time_ms: float | None = None


class RateLimitWindow(BaseModel):
    """Immutable view of the fixed-window counter."""

    model_config = ConfigDict(frozen=True)

    request_count: int = Field(ge=0)
    window_reset_at_epoch_ms: int


class GatewayRequest(BaseModel):
    """One outbound call, built per operation and discarded afterwards."""

    model_config = ConfigDict(frozen=True)

    operation: GatewayOperation
    payload: dict[str, Any]
    timeout_seconds: float = Field(gt=0)
    preferred_provider: ProviderIdentity | None = None

    @property
    def endpoint(self) -> str:
        return self.operation.endpoint


class AnalysisResult(BaseModel):
    """Code-quality verdict, produced by the backend or by the offline heuristics."""

    model_config = ConfigDict(frozen=True)

    code_quality: Literal["high", "medium", "low"]
    potential_issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    explanation: str
    confidence: float = Field(ge=0.0, le=1.0)
    source: Literal["primary", "fallback"]
    timestamp_epoch_ms: int


class ExecutionResult(BaseModel):
    """Outcome of a (simulated) code run."""

    model_config = ConfigDict(frozen=True)

    output: str
    error: str = ""
    execution_time_ms: int = Field(default=0, ge=0)
    is_success: bool
    memory_usage: int = 0
    source: Literal["primary", "fallback"]
    is_static_approximation: bool = False


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class UsageStats(BaseModel):
    request_count: int
    window_reset_at_epoch_ms: int
    max_requests: int
    base_url: str
    model: str
    timeout_seconds: float


class AuthStatus(BaseModel):
    is_authenticated: bool
    requires_setup: bool
    message: str


class SuccessResult(BaseModel):
    """Primary data straight from the backend."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    value: Any
    provider: ProviderIdentity | None = None

    @field_validator("value")
    @classmethod
    def _value_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("success results must carry a value")
        return value


class FallbackResult(BaseModel):
    """Heuristic data produced locally after a failure or a limiter rejection."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fallback"] = "fallback"
    value: Any
    reason: ErrorClassification
    message: str = ""

    @field_validator("value")
    @classmethod
    def _value_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("fallback results must carry a value")
        return value


class ErrorResult(BaseModel):
    """Bare failure, only used where no offline approximation exists."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    classification: ErrorClassification
    message: str


GatewayResult = Annotated[
    Union[SuccessResult, FallbackResult, ErrorResult],
    Field(discriminator="kind"),
]
