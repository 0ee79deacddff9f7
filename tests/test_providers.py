import asyncio

import httpx
import pytest

from assistant_gateway.models import ProviderIdentity
from assistant_gateway.providers import ProviderSelector

from conftest import build_backend_client


def _health(providers: dict | None = None, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        body: dict = {"ok": status_code < 400}
        if providers is not None:
            body["ai"] = {"providers": providers}
        return httpx.Response(status_code, json=body)

    return handler


def test_initial_statuses_only_offline_paths_available():
    selector = ProviderSelector(build_backend_client(_health()))
    statuses = selector.current_statuses()

    assert set(statuses) == set(ProviderIdentity)
    assert statuses[ProviderIdentity.OFFLINE_MOCK].is_available
    assert not statuses[ProviderIdentity.LOCAL_CLI].is_available
    assert selector.resolve() is ProviderIdentity.OFFLINE_MOCK


def test_explicit_preference_is_never_vetoed():
    selector = ProviderSelector(build_backend_client(_health()))
    assert selector.resolve(ProviderIdentity.HOSTED_API) is ProviderIdentity.HOSTED_API


def test_session_default_used_without_override():
    selector = ProviderSelector(
        build_backend_client(_health()), default_provider=ProviderIdentity.LOCAL_CLI
    )
    assert selector.resolve() is ProviderIdentity.LOCAL_CLI
    assert selector.resolve(ProviderIdentity.AUTO) is ProviderIdentity.OFFLINE_MOCK


def test_refresh_replaces_map_and_auto_prefers_local_cli():
    handler = _health(
        {
            "claude-code-sdk": {"provider": "claude-code-sdk", "isAvailable": True},
            "anthropic-api": {"provider": "anthropic-api", "isAvailable": True, "responseTime": 120},
            "mock-provider": {"provider": "mock-provider", "isAvailable": True},
        }
    )
    selector = ProviderSelector(build_backend_client(handler))

    assert asyncio.run(selector.refresh()) is True
    statuses = selector.current_statuses()
    assert statuses[ProviderIdentity.HOSTED_API].response_time_ms == 120
    assert selector.resolve() is ProviderIdentity.LOCAL_CLI


def test_auto_falls_through_to_hosted_api():
    handler = _health(
        {
            "claude-code-sdk": {"isAvailable": False, "lastError": "which claude failed"},
            "anthropic-api": {"isAvailable": True},
        }
    )
    selector = ProviderSelector(build_backend_client(handler))
    asyncio.run(selector.refresh())

    assert selector.resolve() is ProviderIdentity.HOSTED_API
    assert selector.current_statuses()[ProviderIdentity.LOCAL_CLI].last_error == "which claude failed"


def test_refresh_does_not_merge_into_stale_entries():
    responses = iter(
        [
            {"anthropic-api": {"isAvailable": True, "lastError": None, "responseTime": 90}},
            {"anthropic-api": {"isAvailable": False, "lastError": "quota"}},
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True, "ai": {"providers": next(responses)}})

    selector = ProviderSelector(build_backend_client(handler))
    asyncio.run(selector.refresh())
    asyncio.run(selector.refresh())

    hosted = selector.current_statuses()[ProviderIdentity.HOSTED_API]
    assert hosted.is_available is False
    assert hosted.last_error == "quota"
    assert hosted.response_time_ms is None


@pytest.mark.parametrize("status_code", [500, 503])
def test_failed_probe_leaves_map_untouched(status_code):
    ok_handler = _health({"anthropic-api": {"isAvailable": True}})
    selector = ProviderSelector(build_backend_client(ok_handler))
    asyncio.run(selector.refresh())
    before = selector.current_statuses()

    selector._client = build_backend_client(_health(status_code=status_code))
    assert asyncio.run(selector.refresh()) is False
    assert selector.current_statuses() == before


def test_unreachable_probe_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    selector = ProviderSelector(build_backend_client(handler))
    assert asyncio.run(selector.refresh()) is False


def test_record_response_time_swaps_map():
    selector = ProviderSelector(build_backend_client(_health()))
    before = selector.current_statuses()

    selector.record_response_time(ProviderIdentity.OFFLINE_MOCK, 42.0)

    assert before[ProviderIdentity.OFFLINE_MOCK].response_time_ms is None
    assert selector.current_statuses()[ProviderIdentity.OFFLINE_MOCK].response_time_ms == 42.0


def test_recommendations_for_unavailable_backends():
    selector = ProviderSelector(build_backend_client(_health()))
    assert len(selector.recommendations()) == 2


def test_identity_parse_accepts_wire_keys():
    assert ProviderIdentity.parse("claude-code-sdk") is ProviderIdentity.LOCAL_CLI
    assert ProviderIdentity.parse("hosted-api-backed") is ProviderIdentity.HOSTED_API
    with pytest.raises(ValueError):
        ProviderIdentity.parse("gpt")


def _raw_health(body):  # noqa: ANN001
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    return handler


@pytest.mark.parametrize(
    "body",
    [
        {"ok": True, "ai": "disabled"},
        {"ok": True, "ai": {"providers": ["anthropic-api"]}},
        {"ok": True, "ai": {"providers": {"anthropic-api": {"isAvailable": True, "responseTime": "fast"}}}},
        {"ok": True, "ai": {"providers": {"claude-code-sdk": {"isAvailable": False, "lastError": 123}}}},
    ],
)
def test_malformed_health_body_keeps_previous_map(body):
    selector = ProviderSelector(build_backend_client(_health({"claude-code-sdk": {"isAvailable": True}})))
    asyncio.run(selector.refresh())
    before = selector.current_statuses()

    selector._client = build_backend_client(_raw_health(body))

    assert asyncio.run(selector.refresh()) is False
    assert selector.current_statuses() == before
    assert selector.resolve() is ProviderIdentity.LOCAL_CLI


def test_non_object_provider_entry_is_skipped():
    handler = _raw_health(
        {"ok": True, "ai": {"providers": {"claude-code-sdk": "up", "anthropic-api": {"isAvailable": True}}}}
    )
    selector = ProviderSelector(build_backend_client(handler))

    assert asyncio.run(selector.refresh()) is True
    assert not selector.is_available(ProviderIdentity.LOCAL_CLI)
    assert selector.resolve() is ProviderIdentity.HOSTED_API
