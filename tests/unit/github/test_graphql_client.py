"""Unit tests for the GitHub GraphQL client.

Tests GitHubGraphQLClient with:
- Authentication and content headers
- Request body shape
- Failure classification (transport, HTTP status, malformed body)
- Single attempt (no retry)
"""

import json
from unittest.mock import patch

import httpx
import pytest

from discussion_mirror.errors import (
    FetchError,
    HttpStatusError,
    MalformedBodyError,
    TransportError,
)
from discussion_mirror.github.client import GitHubGraphQLClient
from discussion_mirror.github.query import build_repository_discussions_query

QUERY = build_repository_discussions_query("acme", "docs")


def _client(handler) -> GitHubGraphQLClient:
    return GitHubGraphQLClient(
        token="ghp_test_token_123", transport=httpx.MockTransport(handler)
    )


class TestRequest:
    @pytest.mark.asyncio
    async def test_post_with_bearer_and_json(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {}})

        async with _client(handler) as client:
            await client.send(QUERY)

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.github.com/graphql"
        assert request.headers["Authorization"] == "Bearer ghp_test_token_123"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body["query"] == QUERY.text
        assert body["variables"] == {"owner": "acme", "name": "docs", "first": 10}

    @pytest.mark.asyncio
    async def test_custom_endpoint(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"data": {}})

        client = GitHubGraphQLClient(
            token="t", endpoint="https://cms.example.com/graphql", transport=httpx.MockTransport(handler)
        )
        async with client:
            await client.send(QUERY)
        assert seen == ["https://cms.example.com/graphql"]

    def test_tls_verification_enabled_by_default(self):
        with patch("discussion_mirror.github.client.httpx.AsyncClient") as mock_client_cls:
            client = GitHubGraphQLClient(token="t")
        assert client.endpoint == "https://api.github.com/graphql"
        assert mock_client_cls.call_args.kwargs["verify"] is True


class TestResponses:
    @pytest.mark.asyncio
    async def test_returns_parsed_body_unvalidated(self):
        payload = {"data": {"unexpected": True}, "errors": [{"message": "x"}]}

        async with _client(lambda request: httpx.Response(200, json=payload)) as client:
            assert await client.send(QUERY) == payload

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 404, 500, 502])
    async def test_non_200_is_http_status_error(self, status):
        async with _client(
            lambda request: httpx.Response(status, json={"message": "Bad credentials"})
        ) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await client.send(QUERY)
        assert exc_info.value.status_code == status
        assert exc_info.value.kind == "http_status"
        assert "Bad credentials" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_201_is_not_success(self):
        async with _client(lambda request: httpx.Response(201, json={"data": {}})) as client:
            with pytest.raises(HttpStatusError):
                await client.send(QUERY)

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        async with _client(lambda request: httpx.Response(200, text="<html>oops</html>")) as client:
            with pytest.raises(MalformedBodyError) as exc_info:
                await client.send(QUERY)
        assert exc_info.value.kind == "malformed_body"

    @pytest.mark.asyncio
    async def test_json_array_is_malformed(self):
        async with _client(lambda request: httpx.Response(200, json=[1, 2])) as client:
            with pytest.raises(MalformedBodyError):
                await client.send(QUERY)

    @pytest.mark.asyncio
    async def test_undecodable_body_is_malformed(self):
        def handler(request):
            return httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"
            )

        async with _client(handler) as client:
            with pytest.raises(MalformedBodyError) as exc_info:
                await client.send(QUERY)
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc_class", [httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout]
    )
    async def test_transport_failures(self, exc_class):
        def handler(request):
            raise exc_class("boom", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send(QUERY)
        assert isinstance(exc_info.value, FetchError)
        assert exc_info.value.kind == "transport"

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(503)

        async with _client(handler) as client:
            with pytest.raises(HttpStatusError):
                await client.send(QUERY)
        assert len(calls) == 1
