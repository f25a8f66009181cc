"""Tests for the content store client."""

import json
from collections.abc import Callable

import httpx
import pytest
from lingroute.core.errors import TransientFetchError, UnrecoverableFetchError
from lingroute.store.client import ContentStoreClient, create_http_client

API_URL = "https://abc123.api.sanity.io"


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    max_attempts: int = 3,
) -> ContentStoreClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentStoreClient(
        http_client,
        API_URL,
        "production",
        max_attempts=max_attempts,
        backoff_factor=0,
    )


class TestFetch:
    """Tests for ContentStoreClient.fetch()."""

    @pytest.mark.asyncio
    async def test__success__returns_result(self) -> None:
        """Unwrap the result field."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"result": [{"slug": "about"}], "ms": 3})

        result = await _client(handler).fetch("*[_type == $type]", {"type": "page"})

        assert result == [{"slug": "about"}]
        assert len(requests) == 1
        url = requests[0].url
        assert url.path == "/v2024-01-01/data/query/production"
        assert url.params["query"] == "*[_type == $type]"
        assert url.params["$type"] == '"page"'

    @pytest.mark.asyncio
    async def test__params__json_encoded(self) -> None:
        """Encode list and null parameters as JSON."""
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"result": None})

        result = await _client(handler).fetch(
            "q", {"collectionTypes": ["collection.article"], "missing": None}
        )

        assert result is None
        assert json.loads(seen["$collectionTypes"]) == ["collection.article"]
        assert seen["$missing"] == "null"

    @pytest.mark.asyncio
    async def test__transient_then_success__retries(self) -> None:
        """Retry transient failures until one succeeds."""
        statuses = iter([503, 429, 200])
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            status = next(statuses)
            if status != 200:
                return httpx.Response(status)
            return httpx.Response(200, json={"result": "ok"})

        assert await _client(handler).fetch("q") == "ok"
        assert attempts == 3

    @pytest.mark.asyncio
    async def test__transient_exhausted__raises_transient(self) -> None:
        """Give up after the configured number of attempts."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(502)

        with pytest.raises(TransientFetchError, match="HTTP 502"):
            await _client(handler, max_attempts=2).fetch("q")

        assert attempts == 2

    @pytest.mark.asyncio
    async def test__single_attempt__raises_transient(self) -> None:
        """Raise the transient error without retrying when one attempt is allowed."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(503)

        with pytest.raises(TransientFetchError, match="HTTP 503"):
            await _client(handler, max_attempts=1).fetch("q")

        assert attempts == 1

    @pytest.mark.asyncio
    async def test__undecodable_body__unrecoverable(self) -> None:
        """Raise a body that fails content decoding as unrecoverable, without retrying."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip")

        with pytest.raises(UnrecoverableFetchError, match="DecodingError"):
            await _client(handler).fetch("q")

        assert attempts == 1

    @pytest.mark.asyncio
    async def test__transport_error__retried(self) -> None:
        """Treat connection failures as transient."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"result": []})

        assert await _client(handler).fetch("q") == []
        assert attempts == 2

    @pytest.mark.asyncio
    async def test__client_error__not_retried(self) -> None:
        """Raise unrecoverable errors immediately."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(400, json={"error": "bad query"})

        with pytest.raises(UnrecoverableFetchError, match="HTTP 400"):
            await _client(handler).fetch("q")

        assert attempts == 1

    @pytest.mark.asyncio
    async def test__invalid_json__unrecoverable(self) -> None:
        """Reject responses that are not JSON."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with pytest.raises(UnrecoverableFetchError, match="invalid JSON"):
            await _client(handler).fetch("q")

    @pytest.mark.asyncio
    async def test__missing_result__unrecoverable(self) -> None:
        """Reject responses without a result field."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ms": 1})

        with pytest.raises(UnrecoverableFetchError, match="no result field"):
            await _client(handler).fetch("q")


class TestCreateHttpClient:
    """Tests for create_http_client()."""

    @pytest.mark.asyncio
    async def test__token__bearer_header(self) -> None:
        """Send the token as a bearer credential."""
        async with create_http_client("secret", 5.0) as client:
            assert client.headers["Authorization"] == "Bearer secret"
            assert client.timeout.read == 5.0

    @pytest.mark.asyncio
    async def test__no_token__no_auth_header(self) -> None:
        """Query anonymously without a token."""
        async with create_http_client(None, 5.0) as client:
            assert "Authorization" not in client.headers
