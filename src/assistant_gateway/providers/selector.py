"""Provider selection and last-known availability tracking."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from ..client import BackendClient
from ..errors import GatewayError
from ..models import HEALTH_ENDPOINT, ProviderIdentity, ProviderStatus

logger = structlog.get_logger(__name__)

HEALTH_TIMEOUT_SECONDS = 5.0

# Order in which ``auto`` tries the real backends.
AUTO_PREFERENCE = (ProviderIdentity.LOCAL_CLI, ProviderIdentity.HOSTED_API)

_RECOMMENDATIONS = {
    ProviderIdentity.HOSTED_API: "Configure an Anthropic API key for high-quality hosted answers.",
    ProviderIdentity.LOCAL_CLI: "Set up the Claude CLI for free, local answers.",
}


def default_statuses() -> dict[ProviderIdentity, ProviderStatus]:
    return {
        identity: ProviderStatus(
            identity=identity,
            is_available=identity in (ProviderIdentity.AUTO, ProviderIdentity.OFFLINE_MOCK),
        )
        for identity in ProviderIdentity
    }


class ProviderSelector:
    """Owns the provider status map.

    The map is never edited in place: refreshes and latency updates build a
    new dict and swap it in, so readers always see a consistent snapshot.
    The periodic refresh is driven by the caller, not by this class.
    """

    def __init__(
        self,
        client: BackendClient,
        default_provider: ProviderIdentity = ProviderIdentity.AUTO,
        health_timeout: float = HEALTH_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._default = default_provider
        self._health_timeout = health_timeout
        self._statuses: dict[ProviderIdentity, ProviderStatus] = default_statuses()

    @property
    def default_provider(self) -> ProviderIdentity:
        return self._default

    def current_statuses(self) -> Mapping[ProviderIdentity, ProviderStatus]:
        return dict(self._statuses)

    def is_available(self, identity: ProviderIdentity) -> bool:
        status = self._statuses.get(identity)
        return bool(status and status.is_available)

    def resolve(self, preferred: ProviderIdentity | None = None) -> ProviderIdentity:
        choice = preferred if preferred is not None else self._default
        if choice is not ProviderIdentity.AUTO:
            return choice
        for identity in AUTO_PREFERENCE:
            if self.is_available(identity):
                return identity
        return ProviderIdentity.OFFLINE_MOCK

    async def refresh(self) -> bool:
        """Probe the health endpoint and swap in the reported statuses.

        Returns ``False`` when the probe failed; the previous map stays.
        """

        try:
            data = await self._client.fetch(HEALTH_ENDPOINT, timeout=self._health_timeout)
        except GatewayError as exc:
            logger.warning("providers.refresh_failed", error=str(exc))
            return False

        ai = data.get("ai")
        if ai is not None and not isinstance(ai, dict):
            logger.warning("providers.refresh_failed", error="malformed 'ai' section in health body")
            return False

        providers = (ai or {}).get("providers")
        if providers is None:
            logger.info("providers.refresh_skipped", reason="no provider map in health body")
            return bool(data.get("ok", True))
        if not isinstance(providers, dict):
            logger.warning("providers.refresh_failed", error="malformed provider map in health body")
            return False

        try:
            statuses = _statuses_from_health(providers)
        except ValidationError as exc:
            logger.warning("providers.refresh_failed", error=str(exc))
            return False

        self._statuses = statuses
        logger.info(
            "providers.refreshed",
            available=[identity.value for identity, status in self._statuses.items() if status.is_available],
        )
        return True

    def record_response_time(self, identity: ProviderIdentity, response_time_ms: float) -> None:
        current = self._statuses.get(identity) or ProviderStatus(identity=identity, is_available=True)
        updated = dict(self._statuses)
        updated[identity] = current.model_copy(update={"response_time_ms": response_time_ms})
        self._statuses = updated

    def recommendations(self) -> list[str]:
        return [
            message
            for identity, message in _RECOMMENDATIONS.items()
            if not self.is_available(identity)
        ]


def _statuses_from_health(providers: dict[str, Any]) -> dict[ProviderIdentity, ProviderStatus]:
    statuses = default_statuses()
    for key, entry in providers.items():
        try:
            identity = ProviderIdentity.parse(key)
        except ValueError:
            logger.debug("providers.unknown_identity", provider=key)
            continue
        if not isinstance(entry, dict):
            logger.debug("providers.malformed_entry", provider=key)
            continue
        statuses[identity] = ProviderStatus(
            identity=identity,
            is_available=bool(entry.get("isAvailable", entry.get("is_available", False))),
            last_error=entry.get("lastError") or entry.get("last_error"),
            response_time_ms=entry.get("responseTime", entry.get("response_time_ms")),
        )
    return statuses
