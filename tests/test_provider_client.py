"""Tests for provider HTTP client retry/timeout behavior."""

from unittest.mock import patch

import httpx
import pytest

from ai_extraction.provider_client import (
    ProviderClient,
    ProviderError,
    ProviderRequest,
    ProviderUnavailable,
    TransportError,
)


@pytest.fixture
def client():
    """Create a provider client with fast retry settings for testing."""
    client = ProviderClient(
        timeout=5,
        connect_timeout=2,
        retry_attempts=3,
        retry_delay=0.01,  # Fast retries for tests
        retry_backoff=1.0,  # No backoff for tests
    )
    yield client
    client.close()


@pytest.fixture
def request_():
    return ProviderRequest(
        method="POST",
        url="https://llm.example/v1/generate?key=secret",
        headers={"Content-Type": "application/json"},
        body={"prompt": "extract fields"},
    )


class TestSend:
    def test_successful_request(self, client: ProviderClient, request_: ProviderRequest):
        response = httpx.Response(200, json={"response": '{"first_name": "Tendai"}'})

        with patch.object(client._client, "request", return_value=response) as mock_request:
            body = client.send(request_)

        assert body == {"response": '{"first_name": "Tendai"}'}
        mock_request.assert_called_once_with(
            "POST",
            "https://llm.example/v1/generate?key=secret",
            headers={"Content-Type": "application/json"},
            json={"prompt": "extract fields"},
        )

    def test_503_triggers_retry_then_succeeds(self, client: ProviderClient, request_: ProviderRequest):
        responses = [
            httpx.Response(503, text="overloaded"),
            httpx.Response(200, json={"response": "ok"}),
        ]

        with patch.object(client._client, "request", side_effect=responses) as mock_request:
            assert client.send(request_) == {"response": "ok"}
            assert mock_request.call_count == 2

    def test_429_is_retryable(self, client: ProviderClient, request_: ProviderRequest):
        responses = [httpx.Response(429, text="rate limited"), httpx.Response(200, json={"ok": True})]

        with patch.object(client._client, "request", side_effect=responses):
            assert client.send(request_) == {"ok": True}

    def test_503_exhausts_retries(self, client: ProviderClient, request_: ProviderRequest):
        with patch.object(client._client, "request", return_value=httpx.Response(503, text="down")) as mock_request:
            with pytest.raises(ProviderUnavailable):
                client.send(request_)
            assert mock_request.call_count == 3

    def test_500_raises_provider_error_no_retry(self, client: ProviderClient, request_: ProviderRequest):
        with patch.object(client._client, "request", return_value=httpx.Response(500, text="Internal error")) as mock_request:
            with pytest.raises(ProviderError, match="Internal error"):
                client.send(request_)
            assert mock_request.call_count == 1

    def test_401_raises_provider_error(self, client: ProviderClient, request_: ProviderRequest):
        response = httpx.Response(401, json={"error": {"message": "invalid x-api-key"}})

        with patch.object(client._client, "request", return_value=response):
            with pytest.raises(ProviderError, match="401"):
                client.send(request_)

    def test_connection_error_triggers_retry(self, client: ProviderClient, request_: ProviderRequest):
        call_count = 0

        def mock_request(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count <= 2:
                raise httpx.ConnectError("Connection refused")
            return httpx.Response(200, json={"response": "ok"})

        with patch.object(client._client, "request", side_effect=mock_request):
            assert client.send(request_) == {"response": "ok"}
            assert call_count == 3

    def test_read_timeout_is_transport_error(self, client: ProviderClient, request_: ProviderRequest):
        with patch.object(client._client, "request", side_effect=httpx.ReadTimeout("Read timed out")):
            with pytest.raises(TransportError):
                client.send(request_)

    def test_non_json_body(self, client: ProviderClient, request_: ProviderRequest):
        with patch.object(client._client, "request", return_value=httpx.Response(200, text="<html>gateway</html>")):
            with pytest.raises(ProviderError, match="non-JSON"):
                client.send(request_)

    def test_non_object_body(self, client: ProviderClient, request_: ProviderRequest):
        with patch.object(client._client, "request", return_value=httpx.Response(200, json=[1, 2])):
            with pytest.raises(ProviderError):
                client.send(request_)


class TestProviderRequest:
    def test_safe_url_drops_query(self, request_: ProviderRequest):
        assert request_.safe_url == "https://llm.example/v1/generate"
