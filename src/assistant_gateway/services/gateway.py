"""Gateway facade composing limiter, client, classifier, selector and fallbacks."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Any, Literal

import structlog

from ..client import BackendClient
from ..errors import EmptyResponseError, GatewayError, InvalidResponseError, RateLimitExceededError
from ..logging import bind_trace, clear_trace
from ..models import (
    HEALTH_ENDPOINT,
    AnalysisResult,
    AuthStatus,
    ErrorClassification,
    ErrorResult,
    ExecutionResult,
    FallbackResult,
    GatewayOperation,
    GatewayRequest,
    GatewayResult,
    ProviderIdentity,
    SuccessResult,
    UsageStats,
    ValidationResult,
)
from ..prompts import build_code_analysis_prompt, build_code_generation_prompt, extract_json_object
from ..providers import ProviderSelector
from ..settings import Settings
from .classifier import classify, describe
from .fallback import FallbackEngine
from .rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)

PRIMARY_CONFIDENCE = 0.8
DEFAULT_MEMORY_USAGE = 1024
FILE_OPERATIONS = ("read", "write", "analyze")

FileOperation = Literal["read", "write", "analyze"]
_TRACE_KEYS = ("trace_id", "operation")


class AssistantGateway:
    """Single entry point for every AI-backed feature.

    Chat, code analysis, code generation and execution simulation always
    come back as ``success`` or ``fallback``. File operations and project
    analysis have no offline approximation and may return ``error``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: BackendClient | None = None,
        rate_limiter: RateLimiter | None = None,
        selector: ProviderSelector | None = None,
        fallback: FallbackEngine | None = None,
    ) -> None:
        self._settings = settings
        self.client = client or BackendClient(
            settings.resolved_base_url, timeout=settings.timeout_seconds
        )
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        self.selector = selector or ProviderSelector(
            self.client, default_provider=ProviderIdentity.parse(settings.default_provider)
        )
        self.fallback = fallback or FallbackEngine()

    @property
    def settings(self) -> Settings:
        return self._settings

    async def aclose(self) -> None:
        await self.client.aclose()

    async def chat(
        self,
        message: str,
        context: Any = None,
        preferred_provider: ProviderIdentity | str | None = None,
    ) -> GatewayResult:
        payload: dict[str, Any] = {"message": message, "model": self._settings.model}
        if context:
            payload["context"] = context
        request = GatewayRequest(
            operation=GatewayOperation.CHAT,
            payload=payload,
            timeout_seconds=self._settings.timeout_seconds,
            preferred_provider=_parse_provider(preferred_provider),
        )

        def on_failure(reason: ErrorClassification, detail: str) -> GatewayResult:
            return FallbackResult(
                value=self.fallback.chat(message, reason), reason=reason, message=detail
            )

        return await self._run(request, lambda data: _required_text(data, "response"), on_failure)

    async def analyze_code(self, code: str, context: str | None = None) -> GatewayResult:
        request = GatewayRequest(
            operation=GatewayOperation.ANALYZE_CODE,
            payload={
                "message": build_code_analysis_prompt(code, context),
                "model": self._settings.model,
            },
            timeout_seconds=self._settings.timeout_seconds,
        )

        def on_failure(reason: ErrorClassification, detail: str) -> GatewayResult:
            return FallbackResult(value=self.fallback.analyze(code), reason=reason, message=detail)

        return await self._run(request, self._parse_analysis, on_failure)

    async def generate_code(self, prompt: str, language: str = "typescript") -> GatewayResult:
        request = GatewayRequest(
            operation=GatewayOperation.GENERATE_CODE,
            payload={
                "prompt": build_code_generation_prompt(prompt, language),
                "fileType": "tsx" if language == "typescript" else language,
                "style": "modern",
            },
            timeout_seconds=self._settings.timeout_seconds,
        )

        def on_failure(reason: ErrorClassification, detail: str) -> GatewayResult:
            return FallbackResult(
                value=self.fallback.generate_code(prompt, language), reason=reason, message=detail
            )

        return await self._run(request, lambda data: _required_text(data, "code"), on_failure)

    async def file_operation(
        self,
        operation: FileOperation,
        file_path: str,
        content: str | None = None,
    ) -> GatewayResult:
        if operation not in FILE_OPERATIONS:
            raise ValueError(f"Unsupported file operation: {operation!r}")
        payload: dict[str, Any] = {"operation": operation, "filePath": file_path}
        if content is not None:
            payload["content"] = content
        request = GatewayRequest(
            operation=GatewayOperation.FILE_OP,
            payload=payload,
            timeout_seconds=self._settings.timeout_seconds,
        )
        return await self._run(request, lambda data: _required_value(data, "result"), _error_result)

    async def analyze_project(
        self, query: str | None = None, directory: str | None = None
    ) -> GatewayResult:
        payload = {key: value for key, value in (("query", query), ("directory", directory)) if value}
        request = GatewayRequest(
            operation=GatewayOperation.ANALYZE_PROJECT,
            payload=payload,
            timeout_seconds=self._settings.timeout_seconds,
        )
        return await self._run(
            request, lambda data: _required_value(data, "analysis"), _error_result
        )

    async def execute_code(
        self,
        code: str,
        language: str = "csharp",
        include_compile_check: bool = False,
        timeout_seconds: float | None = None,
    ) -> GatewayResult:
        timeout = timeout_seconds or self._settings.execute_timeout_seconds
        request = GatewayRequest(
            operation=GatewayOperation.EXECUTE_CODE,
            payload={
                "code": code,
                "language": language,
                "options": {
                    "includeCompileCheck": include_compile_check,
                    "timeout": int(timeout * 1000),
                },
            },
            timeout_seconds=timeout,
        )
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        def on_success(data: dict[str, Any]) -> ExecutionResult:
            return ExecutionResult(
                output=str(data.get("output") or ""),
                error=str(data.get("error") or ""),
                execution_time_ms=_int_field(data, "executionTime", elapsed_ms()),
                is_success=bool(data.get("isSuccess", False)),
                memory_usage=_int_field(data, "memoryUsage", DEFAULT_MEMORY_USAGE),
                source="primary",
            )

        def on_failure(reason: ErrorClassification, detail: str) -> GatewayResult:
            simulated = self.fallback.execute_code(code, language, execution_time_ms=elapsed_ms())
            return FallbackResult(value=simulated, reason=reason, message=detail)

        return await self._run(request, on_success, on_failure)

    def validate_code(self, code: str, language: str = "csharp") -> ValidationResult:
        return self.fallback.validate_code(code, language)

    async def health_check(self) -> bool:
        try:
            await self.client.fetch(HEALTH_ENDPOINT, timeout=self._settings.timeout_seconds)
        except GatewayError as exc:
            logger.warning("gateway.health_check_failed", error=str(exc))
            return False
        return True

    async def refresh_providers(self) -> bool:
        return await self.selector.refresh()

    async def auth_status(self) -> AuthStatus:
        """Probe health, then send one test chat to find out what the user must fix."""

        if not await self.health_check():
            return AuthStatus(
                is_authenticated=False,
                requires_setup=True,
                message="The assistant server is not running. Start it with: npm run dev",
            )

        request = GatewayRequest(
            operation=GatewayOperation.CHAT,
            payload={"message": "Hello", "model": self._settings.model},
            timeout_seconds=self._settings.timeout_seconds,
        )
        try:
            data, _ = await self._dispatch(request)
            _required_text(data, "response")
        except GatewayError as exc:
            classification = classify(exc)
            if classification is ErrorClassification.SETUP_REQUIRED:
                return AuthStatus(
                    is_authenticated=False,
                    requires_setup=True,
                    message="The Claude CLI must be installed: npm install -g @anthropic-ai/claude-code",
                )
            if classification is ErrorClassification.AUTH_REQUIRED:
                return AuthStatus(
                    is_authenticated=False,
                    requires_setup=False,
                    message="Claude authentication is required. Run: claude login",
                )
            return AuthStatus(
                is_authenticated=False,
                requires_setup=True,
                message=f"Connection error: {describe(exc)}",
            )

        return AuthStatus(
            is_authenticated=True,
            requires_setup=False,
            message="The assistant backend is working.",
        )

    def usage_stats(self) -> UsageStats:
        window = self.rate_limiter.snapshot()
        return UsageStats(
            request_count=window.request_count,
            window_reset_at_epoch_ms=window.window_reset_at_epoch_ms,
            max_requests=self.rate_limiter.max_requests,
            base_url=self.client.base_url,
            model=self._settings.model,
            timeout_seconds=self._settings.timeout_seconds,
        )

    async def _run(
        self,
        request: GatewayRequest,
        on_success: Callable[[dict[str, Any]], Any],
        on_failure: Callable[[ErrorClassification, str], GatewayResult],
    ) -> GatewayResult:
        bind_trace(trace_id=uuid.uuid4().hex, operation=request.operation.value)
        try:
            try:
                data, provider = await self._dispatch(request)
                try:
                    value = on_success(data)
                except (TypeError, ValueError, OverflowError) as exc:
                    raise InvalidResponseError(f"Malformed backend response: {exc}") from exc
            except GatewayError as exc:
                classification = classify(exc)
                detail = describe(exc)
                result = on_failure(classification, detail)
                logger.warning(
                    f"gateway.{result.kind}",
                    classification=classification.value,
                    error=detail,
                )
                return result

            logger.info("gateway.success", provider=provider.value)
            return SuccessResult(value=value, provider=provider)
        finally:
            clear_trace(*_TRACE_KEYS)

    async def _dispatch(self, request: GatewayRequest) -> tuple[dict[str, Any], ProviderIdentity]:
        if not self.rate_limiter.admit():
            raise RateLimitExceededError("Rate limit exceeded. Please wait a moment.")

        provider = self.selector.resolve(request.preferred_provider)
        payload = request.payload
        if request.operation is GatewayOperation.CHAT:
            payload = {**payload, "preferredProvider": provider.wire_key}

        started = time.perf_counter()
        data = await self.client.send(request.endpoint, payload, request.timeout_seconds)
        self.selector.record_response_time(provider, round((time.perf_counter() - started) * 1000, 2))
        return data, provider

    def _parse_analysis(self, data: dict[str, Any]) -> AnalysisResult:
        reply = _required_text(data, "response")
        parsed = extract_json_object(reply)
        if parsed is None:
            raise InvalidResponseError("Analysis reply did not contain a JSON object")

        quality = parsed.get("codeQuality")
        confidence = parsed.get("confidence")
        if (
            isinstance(confidence, bool)
            or not isinstance(confidence, (int, float))
            or not 0.0 < confidence <= 1.0
        ):
            confidence = PRIMARY_CONFIDENCE
        return AnalysisResult(
            code_quality=quality if quality in ("high", "medium", "low") else "medium",
            potential_issues=_string_list(parsed.get("potentialIssues")),
            suggestions=_string_list(parsed.get("suggestions")),
            explanation=str(parsed.get("explanation") or "Analysis by the assistant backend"),
            confidence=float(confidence),
            source="primary",
            timestamp_epoch_ms=int(time.time() * 1000),
        )


def _error_result(classification: ErrorClassification, detail: str) -> GatewayResult:
    return ErrorResult(classification=classification, message=detail)


def _parse_provider(value: ProviderIdentity | str | None) -> ProviderIdentity | None:
    if value is None:
        return None
    return ProviderIdentity.parse(value)


def _required_text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise EmptyResponseError(f"Backend response has no '{key}'")
    return value


def _required_value(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise EmptyResponseError(f"Backend response has no '{key}'")
    return value


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def _int_field(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if value is None or value == "" or value == 0:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidResponseError(f"Backend field '{key}' is not a number: {value!r}")
    return int(value)
