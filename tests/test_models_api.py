"""Tests for the catalog API endpoint functions (mocked transport)."""

import httpx
import pytest

from catalog.errors import ApiError, MalformedResponse
from catalog.sources import models_api
from catalog.sources.client import ApiClient, RetryPolicy
from tests.test_records import MODELS_PAYLOAD

PROVIDERS_PAYLOAD = [
    {
        "name": "siliconflow",
        "display_name": "SiliconFlow",
        "api_endpoint": "https://api.siliconflow.cn/v1",
        "reliability_score": 9.2,
        "response_time_ms": 450,
        "uptime_percentage": 99.9,
        "region": "CN",
        "support_streaming": True,
    },
    {
        "name": "ppio",
        "display_name": "PPIO",
        "reliability_score": 8.5,
        "response_time_ms": 600,
    },
]


def routed_client(routes: dict[str, object], seen: list | None = None) -> ApiClient:
    """Client whose transport answers from *routes*, keyed by raw (encoded) path."""

    def handler(request):
        path = request.url.raw_path.decode().split("?")[0]
        if seen is not None:
            seen.append(path)
        if path not in routes:
            return httpx.Response(404, json={"detail": "Not Found"})
        return httpx.Response(200, json=routes[path])

    return ApiClient(
        base_url="http://api.test",
        policy=RetryPolicy(max_attempts=1),
        transport=httpx.MockTransport(handler),
        sleep=lambda _: None,
    )


class TestFetchModels:
    def test_parses_and_derives_ids(self):
        client = routed_client({"/v1/query/models": MODELS_PAYLOAD})
        models = models_api.fetch_models(client)
        assert [m.id for m in models] == ["openai-gpt-4o", "meta-llama-3-1-70b"]
        assert models[0].providers[0].tokens.input == 0.015

    def test_by_brand_encodes_segment(self):
        seen = []
        client = routed_client({"/v1/query/models/brand/Open%20AI": MODELS_PAYLOAD[:1]}, seen)
        models = models_api.fetch_models_by_brand(client, "Open AI")
        assert len(models) == 1
        assert seen == ["/v1/query/models/brand/Open%20AI"]

    def test_wrong_shape_is_malformed(self):
        client = routed_client({"/v1/query/models": {"models": []}})
        with pytest.raises(MalformedResponse) as exc_info:
            models_api.fetch_models(client)
        assert exc_info.value.source == "/v1/query/models"

    def test_missing_required_field_is_malformed(self):
        client = routed_client({"/v1/query/models": [{"brand": "X", "window": 10}]})
        with pytest.raises(MalformedResponse):
            models_api.fetch_models(client)

    def test_api_error_propagates(self):
        client = routed_client({})
        with pytest.raises(ApiError) as exc_info:
            models_api.fetch_models(client)
        assert exc_info.value.status == 404


class TestFetchBrands:
    def test_uses_brands_endpoint(self):
        client = routed_client(
            {"/v1/query/models/brands": {"brands": ["OpenAI", "Meta"], "count": 2}}
        )
        assert models_api.fetch_brands(client) == ["OpenAI", "Meta"]

    def test_falls_back_to_model_list(self):
        client = routed_client({"/v1/query/models": MODELS_PAYLOAD + MODELS_PAYLOAD[:1]})
        assert models_api.fetch_brands(client) == ["Meta", "OpenAI"]

    def test_malformed_brands_body_falls_back(self):
        client = routed_client(
            {
                "/v1/query/models/brands": {"oops": 1},
                "/v1/query/models": MODELS_PAYLOAD,
            }
        )
        assert models_api.fetch_brands(client) == ["Meta", "OpenAI"]

    def test_malformed_model_list_still_raises(self):
        client = routed_client({"/v1/query/models": [{"name": "no brand"}]})
        with pytest.raises(MalformedResponse):
            models_api.fetch_brands(client)

    def test_non_finite_price_is_malformed(self):
        payload = [{**MODELS_PAYLOAD[1], "tokens": {"input": "inf", "output": 1, "unit": "CNY"}}]
        client = routed_client({"/v1/query/models": payload})
        with pytest.raises(MalformedResponse):
            models_api.fetch_models(client)


class TestProviders:
    def test_fetch_providers_without_prices(self):
        client = routed_client({"/v1/providers": PROVIDERS_PAYLOAD})
        providers = models_api.fetch_providers(client)
        assert [p.name for p in providers] == ["siliconflow", "ppio"]
        assert providers[0].tokens is None
        assert providers[1].region is None

    def test_fetch_provider(self):
        client = routed_client({"/v1/providers/ppio": PROVIDERS_PAYLOAD[1]})
        assert models_api.fetch_provider(client, "ppio").display_name == "PPIO"

    def test_fetch_models_by_provider(self):
        client = routed_client({"/v1/providers/siliconflow/models": MODELS_PAYLOAD[:1]})
        models = models_api.fetch_models_by_provider(client, "siliconflow")
        assert models[0].name == "GPT-4o"

    def test_fetch_providers_for_model_encodes_name(self):
        client = routed_client({"/v1/models/Llama%203.1%2070B/providers": PROVIDERS_PAYLOAD})
        providers = models_api.fetch_providers_for_model(client, "Llama 3.1 70B")
        assert len(providers) == 2


def test_get_model_by_id():
    client = routed_client({"/v1/query/models": MODELS_PAYLOAD})
    assert models_api.get_model_by_id(client, "meta-llama-3-1-70b").name == "Llama 3.1 70B"
    assert models_api.get_model_by_id(client, "nope") is None


class TestHealth:
    def test_healthy(self):
        client = routed_client({"/health": {"status": "ok"}})
        status = models_api.check_health(client)
        assert status.healthy is True
        assert status.base_url == "http://api.test"

    def test_unhealthy_never_raises(self):
        client = routed_client({})
        status = models_api.check_health(client)
        assert status.healthy is False
        assert "404" in status.detail
