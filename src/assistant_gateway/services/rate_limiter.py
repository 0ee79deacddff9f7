"""Fixed-window request counter guarding the backend tier."""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from ..models import RateLimitWindow

logger = structlog.get_logger(__name__)

DEFAULT_MAX_REQUESTS = 30
DEFAULT_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Admits up to ``max_requests`` calls per window.

    The window resets lazily on the first call that arrives after it
    expired. ``admit`` never awaits, so on a single event loop two
    interleaved callers cannot both slip past the ceiling.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self._max_requests = max_requests
        self._window_ms = int(window_seconds * 1000)
        self._clock = clock
        self._request_count = 0
        self._window_reset_at_ms = self._now_ms() + self._window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def admit(self) -> bool:
        now = self._now_ms()
        if now > self._window_reset_at_ms:
            self._request_count = 0
            self._window_reset_at_ms = now + self._window_ms

        if self._request_count >= self._max_requests:
            logger.warning(
                "ratelimit.rejected",
                request_count=self._request_count,
                limit=self._max_requests,
                reset_in_ms=self._window_reset_at_ms - now,
            )
            return False

        self._request_count += 1
        return True

    def snapshot(self) -> RateLimitWindow:
        return RateLimitWindow(
            request_count=self._request_count,
            window_reset_at_epoch_ms=self._window_reset_at_ms,
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
