"""Exceptions raised below the gateway facade.

They never cross the facade: ``AssistantGateway`` classifies them once and
returns a ``GatewayResult`` instead.
"""

from __future__ import annotations

from typing import Any


class GatewayError(RuntimeError):
    """Base class for every failure the gateway knows how to classify."""


class BackendError(GatewayError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}
        self.request_id = request_id

    @property
    def setup_required(self) -> bool:
        return self.body.get("setup_required") is True

    @property
    def auth_required(self) -> bool:
        return self.body.get("auth_required") is True


class BackendUnreachableError(GatewayError):
    """Raised on DNS, connection or protocol failures before a response arrived."""


class TransportTimeoutError(GatewayError):
    """Raised when the call budget fires; any late response has been discarded."""


class InvalidResponseError(GatewayError):
    """Raised when a 2xx body is not the JSON object the wire contract promises."""


class EmptyResponseError(GatewayError):
    """Raised when a successful body lacks the field the operation reads."""


class RateLimitExceededError(GatewayError):
    """Raised locally when the fixed-window limiter rejects a call."""
