"""HTTP retrieval for Google's certificate and token info endpoints.

``HttpFetcher`` is the default implementation of the Fetcher protocol. It wraps
an ``httpx.AsyncClient`` and reduces every response to a ``FetchResponse``
carrying the status, the raw body and the ``Cache-Control: max-age`` lifetime.

No retries are performed here. A transport failure surfaces once, as
ConnectionFailed, and it is up to the caller to decide what to do with it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import ClientConfig
from .errors import ConnectionFailed
from .protocols import QueryParams

logger = logging.getLogger(__name__)


def parse_max_age(value: str | None) -> int | None:
    """Return the ``max-age`` directive of a Cache-Control header, in seconds.

    Returns None when the header is missing, the directive is absent, or its
    value is not a non-negative integer. Callers treat None as "do not cache".

    Example:
        >>> parse_max_age("public, max-age=19204, must-revalidate")
        19204
        >>> parse_max_age("no-cache") is None
        True
    """
    if not value:
        return None

    for directive in value.split(","):
        name, sep, arg = directive.strip().partition("=")
        if name.strip().lower() != "max-age":
            continue
        if not sep:
            return None
        arg = arg.strip().strip('"')
        if not (arg.isascii() and arg.isdigit()):
            # rejects negatives, fractions, non-ASCII digits and garbage alike
            return None
        return int(arg)

    return None


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Outcome of a single GET.

    Attributes:
        status_code: HTTP status of the response.
        content: Raw response body.
        max_age: Cache lifetime in seconds, or None if the response must not be cached.
    """

    status_code: int
    content: bytes
    max_age: int | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ConnectionFailed: If the body is not valid JSON.
        """
        try:
            return json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConnectionFailed("Response body is not valid JSON") from e


def build_http_client(config: ClientConfig) -> httpx.AsyncClient:
    """Create the default AsyncClient with the configured connect timeout and pool size."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(None, connect=config.connect_timeout),
        limits=httpx.Limits(max_keepalive_connections=config.max_idle_connections),
    )


class HttpFetcher:
    """httpx-backed Fetcher.

    The fetcher either owns its AsyncClient (built from ClientConfig) or borrows
    one passed in by the caller. Only an owned client is closed by ``aclose``.

    Example:
        ```python
        fetcher = HttpFetcher(ClientConfig(connect_timeout=5.0))
        response = await fetcher.fetch(GOOGLE_CERTS_URL)
        if response.ok:
            keys = response.json()["keys"]
        await fetcher.aclose()
        ```
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or build_http_client(config or ClientConfig())

    async def fetch(self, url: str, params: QueryParams | None = None) -> FetchResponse:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("GET %s failed: %s", url, e)
            raise ConnectionFailed(f"Request to {url} failed") from e

        return FetchResponse(
            status_code=response.status_code,
            content=response.content,
            max_age=parse_max_age(response.headers.get("Cache-Control")),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
