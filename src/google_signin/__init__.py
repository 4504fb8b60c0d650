"""
Google ID token verification with a locally cached certificate set.

High-level flow (per token)
---------------------------
1. `GoogleSignInClient.verify_token(token)` calls `IdTokenVerifier.verify`.
2. The unverified header is read to get the optional `kid`.
3. Under the `CertCache` lock, the certificate set is refreshed if stale
   (`Cache-Control: max-age` of the last fetch has elapsed, or was absent).
4. The certificate named by `kid` is tried, or every cached certificate when
   the header has no `kid`. An unknown `kid` fails with `UnknownKey`.
5. `jwt.decode` checks the RS256 signature, exp/nbf/iat and audience; then
   issuer and hosted domain are checked. The first passing certificate wins.

Security notes
--------------
- Only RS256 is accepted.
- Per-certificate failures are never surfaced; callers get one `InvalidToken`.
- A failed refresh keeps serving the last-known-good certificates.
- `get_unverified` trusts Google's token info endpoint and checks nothing locally.

Example usage
-------------

.. code-block:: python

    from google_signin import GoogleSignInClient, InvalidToken

    async with GoogleSignInClient(
        audiences=["1234.apps.googleusercontent.com"],
        hosted_domains=["example.com"],
    ) as google:
        claims = await google.verify_token(id_token)
        print(claims.sub, claims.email, claims.hd)
"""

# Certificates
from .cert_cache import CertCache
from .certs import Certificate, KeyStore

# Claims
from .claims import IdTokenClaims

# Client
from .client import GoogleSignInClient

# Configuration
from .config import (
    GOOGLE_CERTS_URL,
    GOOGLE_ISSUERS,
    GOOGLE_TOKENINFO_URL,
    ClientConfig,
    VerificationConfig,
    load_config,
)

# Errors
from .errors import (
    AuthError,
    ConfigurationError,
    ConnectionFailed,
    InvalidToken,
    MalformedHeader,
    UnknownKey,
)

# Transport
from .fetch import FetchResponse, HttpFetcher, parse_max_age

# Protocols
from .protocols import Fetcher, TokenVerifier

# Refresh gate
from .refresh_gate import RefreshGate

# Verifier
from .verifier import IdTokenVerifier

__all__ = [
    # Errors
    "AuthError",
    "ConfigurationError",
    "ConnectionFailed",
    "InvalidToken",
    "MalformedHeader",
    "UnknownKey",
    # Protocols
    "Fetcher",
    "TokenVerifier",
    # Configuration
    "GOOGLE_CERTS_URL",
    "GOOGLE_ISSUERS",
    "GOOGLE_TOKENINFO_URL",
    "ClientConfig",
    "VerificationConfig",
    "load_config",
    # Transport
    "FetchResponse",
    "HttpFetcher",
    "parse_max_age",
    # Certificates
    "Certificate",
    "KeyStore",
    "CertCache",
    # Claims
    "IdTokenClaims",
    # Refresh gate
    "RefreshGate",
    # Verifier
    "IdTokenVerifier",
    # Client
    "GoogleSignInClient",
]
