"""Errors raised while fetching Google certificates and verifying ID tokens.

All errors inherit from AuthError so application code can catch a single type.

Security Note:
    Messages are intentionally generic. The verifier never reports which check
    rejected a token; detailed reasons go to the server-side log at DEBUG level.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base exception for every failure raised by this package."""


class ConnectionFailed(AuthError):  # noqa: N818
    """Raised when talking to a Google endpoint fails.

    This occurs when:
    - The HTTP transport fails (DNS, connect timeout, TLS, reset)
    - The certificate endpoint answers with a non-2xx status
    - A response body cannot be decoded into the expected structure

    The underlying exception, if any, is available as ``__cause__``.
    A failed refresh never clears previously cached certificates.
    """


class UnknownKey(AuthError):  # noqa: N818
    """Raised when the token header names a ``kid`` absent from the key store.

    The verifier does not fall back to the remaining keys in this case: an
    explicit but unrecognised key hint means either a stale cache or a forged
    token.
    """


class InvalidToken(AuthError):  # noqa: N818
    """Raised when a token cannot be verified.

    This occurs when:
    - No cached certificate produces a valid RS256 signature
    - The token is expired or not yet valid
    - Issuer, audience or hosted domain do not match the configuration
    - The introspection endpoint rejects the token (non-2xx status)

    Security Note:
        One generic error is raised for every candidate failure so callers
        cannot use partial results as a signature-forgery oracle.
    """


class MalformedHeader(AuthError):  # noqa: N818
    """Raised when the token header cannot be decoded before any key lookup."""


class ConfigurationError(AuthError):
    """Raised for invalid client configuration.

    Verifying with an empty audience list is a caller error and is reported
    here rather than silently accepting any audience.
    """
