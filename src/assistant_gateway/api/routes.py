"""HTTP routes exposing the assistant gateway to the presentation layer."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from ..models import ErrorResult, GatewayResult
from ..services.gateway import AssistantGateway
from .errors import map_error_result
from .schemas import (
    AnalyzeCodeBody,
    AnalyzeProjectBody,
    ChatBody,
    ExecuteCodeBody,
    FileOperationBody,
    GenerateCodeBody,
    ValidateCodeBody,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


def get_gateway(request: Request) -> AssistantGateway:
    gateway: AssistantGateway = request.app.state.gateway
    return gateway


@router.get("/healthz")
async def health_check(request: Request) -> dict[str, object]:
    gateway = get_gateway(request)
    return {
        "status": "ok",
        "environment": gateway.settings.environment,
        "providers": _status_map(gateway),
    }


@router.get("/v1/assistant/providers")
async def list_providers(gateway: AssistantGateway = Depends(get_gateway)) -> dict[str, object]:
    return {
        "providers": _status_map(gateway),
        "selected": gateway.selector.resolve().value,
        "recommendations": gateway.selector.recommendations(),
    }


@router.post("/v1/assistant/providers/refresh")
async def refresh_providers(gateway: AssistantGateway = Depends(get_gateway)) -> dict[str, object]:
    refreshed = await gateway.refresh_providers()
    return {"refreshed": refreshed, "providers": _status_map(gateway)}


@router.get("/v1/assistant/usage")
async def usage(gateway: AssistantGateway = Depends(get_gateway)) -> dict[str, Any]:
    return gateway.usage_stats().model_dump()


@router.get("/v1/assistant/auth-status")
async def auth_status(gateway: AssistantGateway = Depends(get_gateway)) -> dict[str, Any]:
    status = await gateway.auth_status()
    return status.model_dump()


@router.post("/v1/assistant/chat")
async def chat(
    payload: ChatBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    result = await gateway.chat(
        payload.message,
        context=payload.context,
        preferred_provider=payload.preferred_provider,
    )
    return _render(result)


@router.post("/v1/assistant/analyze-code")
async def analyze_code(
    payload: AnalyzeCodeBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    return _render(await gateway.analyze_code(payload.code, context=payload.context))


@router.post("/v1/assistant/generate-code")
async def generate_code(
    payload: GenerateCodeBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    return _render(await gateway.generate_code(payload.prompt, language=payload.language))


@router.post("/v1/assistant/execute-code")
async def execute_code(
    payload: ExecuteCodeBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    timeout_seconds = payload.timeout_ms / 1000 if payload.timeout_ms else None
    result = await gateway.execute_code(
        payload.code,
        language=payload.language,
        include_compile_check=payload.include_compile_check,
        timeout_seconds=timeout_seconds,
    )
    return _render(result)


@router.post("/v1/assistant/validate-code")
async def validate_code(
    payload: ValidateCodeBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    return gateway.validate_code(payload.code, language=payload.language).model_dump()


@router.post("/v1/assistant/file-operation")
async def file_operation(
    payload: FileOperationBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    result = await gateway.file_operation(
        payload.operation, payload.file_path, content=payload.content
    )
    return _render_or_raise(result)


@router.post("/v1/assistant/analyze-project")
async def analyze_project(
    payload: AnalyzeProjectBody, gateway: AssistantGateway = Depends(get_gateway)
) -> dict[str, Any]:
    result = await gateway.analyze_project(query=payload.query, directory=payload.directory)
    return _render_or_raise(result)


def _status_map(gateway: AssistantGateway) -> dict[str, Any]:
    return {
        identity.value: status.model_dump(mode="json")
        for identity, status in gateway.selector.current_statuses().items()
    }


def _render(result: GatewayResult) -> dict[str, Any]:
    return result.model_dump(mode="json")


def _render_or_raise(result: GatewayResult) -> dict[str, Any]:
    if isinstance(result, ErrorResult):
        logger.warning(
            "assistant.request_failed",
            classification=result.classification.value,
            error=result.message,
        )
        raise map_error_result(result)
    return _render(result)
