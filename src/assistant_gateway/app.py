"""FastAPI application factory for the assistant sidecar."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response

from .api.routes import router
from .logging import bind_trace, configure_logging
from .services.gateway import AssistantGateway
from .settings import Settings, get_settings

logger = structlog.get_logger(__name__)


async def refresh_periodically(gateway: AssistantGateway, interval: float) -> None:
    """Keep the provider status map fresh; the gateway itself owns no timers."""

    while True:
        try:
            await gateway.refresh_providers()
        except Exception:
            logger.exception("providers.refresh_crashed")
        await asyncio.sleep(interval)


def create_app(
    settings: Settings | None = None,
    gateway: AssistantGateway | None = None,
    *,
    refresh_providers: bool = True,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    gateway = gateway or AssistantGateway(settings=settings)

    app = FastAPI(title="Assistant Gateway", version="0.1.0")
    app.state.gateway = gateway
    app.state.refresh_task = None

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - framework hook
        if refresh_providers:
            app.state.refresh_task = asyncio.create_task(
                refresh_periodically(gateway, settings.provider_refresh_seconds)
            )

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - framework hook
        task = app.state.refresh_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("providers.refresh_stopped")
        await gateway.aclose()

    @app.middleware("http")
    async def inject_request_context(  # pragma: no cover
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("x-request-id", uuid.uuid4().hex)
        request.state.request_id = request_id
        bind_trace(request_id=request_id)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response

    app.include_router(router)
    return app
