"""Tests for the API client and retry policy.

All HTTP goes through httpx.MockTransport; nothing touches the network.
"""

import httpx
import pytest

from catalog import config
from catalog.errors import ApiError
from catalog.sources.client import ApiClient, RetryPolicy, is_transient


def make_client(handler, *, base_url="http://api.test", max_attempts=3, sleeps=None):
    return ApiClient(
        base_url=base_url,
        policy=RetryPolicy(max_attempts=max_attempts, base_delay=0.5),
        transport=httpx.MockTransport(handler),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


class Responder:
    """Replays a list of responses (or exceptions) and counts calls."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self, request):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestRetryPolicy:
    def test_transient_statuses(self):
        assert is_transient(None)
        assert is_transient(500)
        assert is_transient(503)
        assert not is_transient(404)
        assert not is_transient(429)

    def test_exponential_delay(self):
        policy = RetryPolicy(max_attempts=4, base_delay=0.5)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]

    def test_from_config(self, monkeypatch):
        monkeypatch.setattr("catalog.config.MAX_RETRIES", 4)
        monkeypatch.setattr("catalog.config.RETRY_DELAY", 0.25)
        policy = RetryPolicy.from_config()
        assert policy.max_attempts == 5
        assert policy.base_delay == 0.25

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestGetJson:
    def test_returns_decoded_body(self):
        responder = Responder(httpx.Response(200, json=[{"brand": "X"}]))
        with make_client(responder) as client:
            assert client.get_json("/v1/query/models") == [{"brand": "X"}]
        assert responder.calls == 1

    def test_retries_server_errors_then_succeeds(self):
        sleeps = []
        responder = Responder(httpx.Response(503), httpx.Response(200, json={"ok": True}))
        client = make_client(responder, sleeps=sleeps)
        assert client.get_json("/health") == {"ok": True}
        assert responder.calls == 2
        assert sleeps == [0.5]

    def test_retries_network_errors(self):
        responder = Responder(
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json=[]),
        )
        client = make_client(responder)
        assert client.get_json("/v1/providers") == []
        assert responder.calls == 2

    def test_gives_up_after_max_attempts(self):
        sleeps = []
        responder = Responder(httpx.Response(500, json={"message": "upstream down"}))
        client = make_client(responder, sleeps=sleeps)
        with pytest.raises(ApiError) as exc_info:
            client.get_json("/v1/query/models")
        assert responder.calls == 3
        assert sleeps == [0.5, 1.0]
        assert exc_info.value.status == 500
        assert exc_info.value.message == "upstream down"

    def test_network_failure_has_no_status(self):
        responder = Responder(httpx.ConnectError("connection refused"))
        client = make_client(responder, max_attempts=2)
        with pytest.raises(ApiError) as exc_info:
            client.get_json("/v1/query/models")
        assert exc_info.value.status is None

    def test_client_errors_are_not_retried(self):
        responder = Responder(httpx.Response(404, json={"detail": "Provider not found"}))
        client = make_client(responder)
        with pytest.raises(ApiError) as exc_info:
            client.get_json("/v1/providers/nope")
        assert responder.calls == 1
        assert exc_info.value.status == 404
        assert exc_info.value.detail == "Provider not found"
        assert exc_info.value.message == "Provider not found"

    def test_custom_retryable_predicate(self):
        responder = Responder(httpx.Response(429), httpx.Response(200, json=[]))
        client = ApiClient(
            base_url="http://api.test",
            policy=RetryPolicy(max_attempts=2, base_delay=0, retryable=lambda s: s == 429),
            transport=httpx.MockTransport(responder),
            sleep=lambda _: None,
        )
        assert client.get_json("/v1/providers") == []

    def test_invalid_json_raises(self):
        responder = Responder(httpx.Response(200, text="<html>"))
        client = make_client(responder)
        with pytest.raises(ApiError):
            client.get_json("/v1/query/models")


class TestMockServerParams:
    def _captured(self, base_url, path):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        make_client(handler, base_url=base_url).get_json(path)
        return seen[0]

    def test_default_server_gets_api_id(self):
        request = self._captured(config.DEFAULT_API_BASE_URL, "/v1/query/models")
        assert request.url.params["apifoxApiId"] == "349841955"
        assert request.url.path.endswith("/v1/query/models")

    def test_brand_endpoint_gets_brand_api_id(self):
        request = self._captured(config.DEFAULT_API_BASE_URL, "/v1/query/models/brand/OpenAI")
        assert request.url.params["apifoxApiId"] == "349841956"

    def test_custom_server_gets_no_api_id(self):
        request = self._captured("http://api.test", "/v1/query/models")
        assert "apifoxApiId" not in request.url.params
