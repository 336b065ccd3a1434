"""GitHub GraphQL API client.

Provides an async httpx-based client that POSTs a GraphQL document with a
static Bearer token and classifies failures. Each call is a single attempt:
no retry, no backoff, transport-default timeouts.

Reference: https://docs.github.com/en/graphql/guides/forming-calls-with-graphql
"""

import json
import logging
from typing import Any

import httpx

from ..errors import HttpStatusError, MalformedBodyError, TransportError
from .query import GraphQLQuery

logger = logging.getLogger("discussion_mirror.github.client")

__all__ = ["GitHubGraphQLClient"]


class GitHubGraphQLClient:
    """GitHub GraphQL client using httpx with Bearer token auth.

    TLS certificates are always verified.

    Attributes:
        endpoint: GraphQL endpoint URL

    Example:
        >>> async with GitHubGraphQLClient("ghp_token") as client:
        ...     body = await client.send(query)
    """

    ENDPOINT = "https://api.github.com/graphql"
    USER_AGENT = "discussion-mirror/1.3"

    def __init__(
        self,
        token: str,
        endpoint: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client with token authentication.

        Args:
            token: GitHub access token
            endpoint: GraphQL endpoint (default: https://api.github.com/graphql)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.endpoint = endpoint or self.ENDPOINT
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": self.USER_AGENT,
            },
            verify=True,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubGraphQLClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        await self._client.aclose()

    async def send(self, query: GraphQLQuery) -> dict[str, Any]:
        """POST a GraphQL query and return the parsed response body.

        The body is returned as-is on HTTP 200; shape validation is left
        to the mapper.

        Args:
            query: Query document and variables

        Returns:
            Parsed JSON object

        Raises:
            TransportError: DNS, connection or timeout failure
            HttpStatusError: Any status other than 200
            MalformedBodyError: Body cannot be read or is not a JSON object
        """
        try:
            response = await self._client.post(
                self.endpoint,
                content=json.dumps(query.payload()),
            )
        except httpx.TransportError as e:
            raise TransportError(f"Error fetching GitHub discussions: {e}") from e
        except httpx.HTTPError as e:
            # Body could not be read, e.g. a bad Content-Encoding
            raise MalformedBodyError(f"Error reading the GitHub response: {e}") from e

        if response.status_code != 200:
            logger.debug(
                "graphql_http_error",
                extra={"status_code": response.status_code, "body": response.text[:200]},
            )
            raise HttpStatusError(response.status_code, _error_message(response))

        try:
            data = response.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedBodyError(
                f"Error decoding the GitHub response: {response.text[:200]}"
            ) from e

        if not isinstance(data, dict):
            raise MalformedBodyError(
                f"Expected a JSON object from GitHub, got {type(data).__name__}"
            )
        return data


def _error_message(response: httpx.Response) -> str:
    """Best-effort extraction of GitHub's error message."""
    try:
        payload = response.json()
    except (ValueError, UnicodeDecodeError):
        return ""
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return message
    return ""
