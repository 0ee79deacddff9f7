"""Utilities for translating gateway error results into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..models import ErrorClassification, ErrorResult

_STATUS_BY_CLASSIFICATION: dict[ErrorClassification, tuple[int, str]] = {
    ErrorClassification.SETUP_REQUIRED: (status.HTTP_424_FAILED_DEPENDENCY, "setup_required"),
    ErrorClassification.AUTH_REQUIRED: (status.HTTP_401_UNAUTHORIZED, "auth_required"),
    ErrorClassification.RATE_LIMITED: (status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited"),
    ErrorClassification.NETWORK_UNREACHABLE: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "backend_unreachable",
    ),
    ErrorClassification.TIMED_OUT: (status.HTTP_504_GATEWAY_TIMEOUT, "backend_timeout"),
    ErrorClassification.GENERIC: (status.HTTP_502_BAD_GATEWAY, "backend_error"),
}


def map_error_result(result: ErrorResult) -> HTTPException:
    http_status, code = _STATUS_BY_CLASSIFICATION[result.classification]
    return HTTPException(
        status_code=http_status,
        detail={
            "error": {
                "message": result.message,
                "code": code,
                "classification": result.classification.value,
            }
        },
    )
