"""Protocol definitions for the pluggable seams of the Google sign-in client.

This module defines structural interfaces using Protocol (PEP 544) for:
- HTTP retrieval (the transport behind the certificate cache)
- ID token verification

Any object that implements the required methods satisfies the protocol, so
tests and alternative transports need no inheritance.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, TypeAlias

if TYPE_CHECKING:
    from .claims import IdTokenClaims
    from .fetch import FetchResponse

# ============================================================================
# Type Aliases
# ============================================================================

QueryParams: TypeAlias = Mapping[str, str]
"""Query string parameters appended to an outbound GET."""


# ============================================================================
# Core Protocols
# ============================================================================


class Fetcher(Protocol):
    """Protocol for the network retrieval the certificate cache depends on.

    Implementers perform a single GET and report the status, body and the
    ``max-age`` lifetime parsed from the ``Cache-Control`` response header.
    They must not retry.
    """

    async def fetch(self, url: str, params: QueryParams | None = None) -> FetchResponse:
        """Perform a GET request.

        Args:
            url: Absolute URL to fetch.
            params: Optional query string parameters.

        Returns:
            FetchResponse with status code, raw body and cache lifetime.

        Raises:
            ConnectionFailed: On any transport-level failure.
        """
        ...


class TokenVerifier(Protocol):
    """Protocol for ID token verification implementations."""

    async def verify(self, token: str) -> IdTokenClaims:
        """Verify an ID token and return its claims.

        Raises:
            MalformedHeader: Token header cannot be decoded.
            UnknownKey: Header names a key id not in the cache.
            InvalidToken: No candidate key verifies the token and its claims.
            ConnectionFailed: Certificates could not be fetched on first use.
        """
        ...
