"""Maps transport and limiter failures onto the gateway error taxonomy."""

from __future__ import annotations

import asyncio

from ..errors import (
    BackendError,
    BackendUnreachableError,
    RateLimitExceededError,
    TransportTimeoutError,
)
from ..models import ErrorClassification


def classify(failure: BaseException) -> ErrorClassification:
    """Return the classification for ``failure``.

    Pure function of the exception and its body; rules are checked in
    priority order, so a timed-out call is ``timedOut`` no matter what else
    it carries.
    """

    if isinstance(failure, (TransportTimeoutError, asyncio.TimeoutError, asyncio.CancelledError)):
        return ErrorClassification.TIMED_OUT
    if isinstance(failure, BackendError):
        if failure.setup_required:
            return ErrorClassification.SETUP_REQUIRED
        if failure.auth_required:
            return ErrorClassification.AUTH_REQUIRED
    if isinstance(failure, RateLimitExceededError):
        return ErrorClassification.RATE_LIMITED
    if isinstance(failure, BackendUnreachableError):
        return ErrorClassification.NETWORK_UNREACHABLE
    return ErrorClassification.GENERIC


def describe(failure: BaseException) -> str:
    """Message carried forward with the classification."""

    if isinstance(failure, BackendError):
        error_text = failure.body.get("error")
        if isinstance(error_text, str) and error_text:
            details = failure.body.get("details")
            return f"{error_text} ({details})" if details else error_text
    return str(failure) or type(failure).__name__
