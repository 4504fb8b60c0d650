"""In-memory cache of Google's signing certificates.

The cache holds one KeyStore plus an optional expiry instant:

- expiry set and in the future: the store is fresh and is not refetched.
- expiry unset or passed: the store is stale and a refresh is attempted first.

A refresh replaces the store and the expiry together, or changes neither. A
failed fetch therefore never empties a previously populated cache.

Concurrency:
    One asyncio.Lock guards the whole staleness-check, refresh and read
    sequence. Concurrent verifiers wait for an in-flight refresh instead of
    reading the stale store or fetching again themselves.
"""

from __future__ import annotations

import asyncio
import logging
import time

from .certs import KeyStore
from .config import GOOGLE_CERTS_URL
from .errors import ConnectionFailed
from .protocols import Fetcher

logger = logging.getLogger(__name__)


class CertCache:
    """Certificate cache refreshed according to ``Cache-Control: max-age``.

    Example:
        ```python
        cache = CertCache(HttpFetcher())
        assert await cache.refresh_if_needed() is True   # first use fetches
        assert await cache.refresh_if_needed() is False  # fresh until max-age
        ```

    Attributes:
        lock: Held by the verifier for the entire check-refresh-read sequence.
    """

    def __init__(self, fetcher: Fetcher, certs_url: str = GOOGLE_CERTS_URL) -> None:
        self._fetcher = fetcher
        self._certs_url = certs_url
        self._keys = KeyStore()
        self._expiry: float | None = None
        self.lock = asyncio.Lock()

    @property
    def keys(self) -> KeyStore:
        return self._keys

    @property
    def expiry(self) -> float | None:
        """Monotonic deadline after which the store is stale, or None."""
        return self._expiry

    def is_stale(self) -> bool:
        return self._expiry is None or self._expiry <= time.monotonic()

    def expire(self) -> None:
        """Mark the store stale so the next refresh fetches again."""
        self._expiry = None

    async def refresh_if_needed(self) -> bool:
        """Fetch the certificates if the cached set is stale.

        Returns:
            True if a fetch happened and replaced the store, False if the store
            was still fresh.

        Raises:
            ConnectionFailed: On transport failure, non-2xx status or an
                undecodable body. The current store and expiry are kept.
        """
        async with self.lock:
            return await self.refresh()

    async def refresh(self, force: bool = False) -> bool:
        """Refresh without taking the lock. The caller must hold ``lock``.

        Args:
            force: Fetch even if the store is still fresh.
        """
        if not force and not self.is_stale():
            return False

        response = await self._fetcher.fetch(self._certs_url)
        if not response.ok:
            logger.warning(
                "Certificate fetch from %s returned HTTP %s",
                self._certs_url,
                response.status_code,
            )
            raise ConnectionFailed(
                f"Certificate endpoint returned HTTP {response.status_code}"
            )

        keys = KeyStore.from_jwks(response.json())

        # publish the new store and expiry together, only after parsing succeeded
        self._keys = keys
        if response.max_age is None:
            self._expiry = None
        else:
            self._expiry = time.monotonic() + response.max_age

        logger.info(
            "Loaded %d signing certificates (max-age=%s)",
            len(keys),
            response.max_age,
        )
        return True
