"""Content store query client.

Async HTTP client for the content store query API. Transient failures are
retried with bounded exponential backoff; everything else is raised as an
unrecoverable fetch error.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from lingroute.core.errors import TransientFetchError, UnrecoverableFetchError

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ContentFetcher(Protocol):
    """Uniform content store query capability."""

    async def fetch(self, query: str, params: Mapping[str, Any] | None = None) -> Any: ...


class ContentStoreClient:
    """Async HTTP client for the content store query API.

    Sends GROQ queries as ``GET {api_url}/v{api_version}/data/query/{dataset}``
    with parameters JSON-encoded under ``$name`` keys, and unwraps the
    ``result`` field of the response.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str,
        dataset: str,
        *,
        api_version: str = "2024-01-01",
        max_attempts: int = 3,
        backoff_factor: float = 0.5,
    ) -> None:
        """Initialize content store client.

        Args:
            client: httpx AsyncClient (owns timeouts and auth headers)
            api_url: Query API root (e.g., https://abc123.api.sanity.io)
            dataset: Dataset name
            api_version: Dated API version
            max_attempts: Total attempts for transient failures
            backoff_factor: Base delay in seconds, doubled per retry
        """
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.query_url = f"{self.api_url}/v{api_version}/data/query/{dataset}"
        self.max_attempts = max(1, max_attempts)
        self.backoff_factor = backoff_factor

    async def fetch(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a query and return its result.

        Args:
            query: GROQ query
            params: Query parameters referenced as $name in the query

        Returns:
            Query result, None when the query matched nothing

        Raises:
            TransientFetchError: If the store stayed unavailable for all attempts
            UnrecoverableFetchError: If the store rejected the query
        """
        request_params = {"query": query}
        for name, value in (params or {}).items():
            request_params[f"${name}"] = json.dumps(value)

        attempt = 0
        while True:
            try:
                return await self._fetch_once(request_params)
            except TransientFetchError as e:
                attempt += 1
                if attempt >= self.max_attempts:
                    logger.error(f"Content store unavailable after {attempt} attempts: {e}")
                    raise
                delay = self.backoff_factor * (2 ** (attempt - 1))
                logger.warning(
                    f"Content store query failed (attempt {attempt}/{self.max_attempts}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                await asyncio.sleep(delay)

    async def _fetch_once(self, request_params: dict[str, str]) -> Any:
        try:
            response = await self.client.get(self.query_url, params=request_params)
        except httpx.TransportError as e:
            raise TransientFetchError(f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            # Decoding and redirect errors are not retried
            raise UnrecoverableFetchError(f"{type(e).__name__}: {e}") from e

        if response.status_code in RETRY_STATUS_CODES:
            raise TransientFetchError(f"Content store returned HTTP {response.status_code}")
        if response.status_code >= 400:
            logger.error(f"Error response: {response.text[:500]}")
            raise UnrecoverableFetchError(f"Content store returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UnrecoverableFetchError("Content store returned invalid JSON") from e
        if not isinstance(data, dict) or "result" not in data:
            raise UnrecoverableFetchError("Content store response has no result field")
        return data["result"]


def create_http_client(token: str | None, timeout: float) -> httpx.AsyncClient:
    """Create the httpx client used for content store queries."""
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(headers=headers, timeout=timeout)
