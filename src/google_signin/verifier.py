"""Google ID token verification using PyJWT.

Verification runs as a small state machine:

    DecodeHeader -> SelectCandidates -> TryCandidate* -> Accept | Reject

1. Read the unverified header to get the optional ``kid``.
2. Make sure the certificate cache is usable, refreshing it if stale.
3. Select candidates: the one certificate named by ``kid``, or every cached
   certificate when the header carries no ``kid``.
4. For each candidate, verify the RS256 signature, exp/nbf/iat and audience
   with ``jwt.decode``, then issuer and hosted domain with ``IdTokenClaims.check``.
5. The first candidate that passes wins. If none does, one generic
   InvalidToken is raised; per-candidate reasons are only logged at DEBUG.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Final

import jwt

from .claims import IdTokenClaims
from .errors import (
    ConfigurationError,
    ConnectionFailed,
    InvalidToken,
    MalformedHeader,
    UnknownKey,
)

if TYPE_CHECKING:
    from .cert_cache import CertCache
    from .certs import Certificate
    from .config import VerificationConfig
    from .refresh_gate import RefreshGate

logger = logging.getLogger(__name__)

ALGORITHMS: Final[list[str]] = ["RS256"]
"""Google signs ID tokens with RS256 only. Nothing else is ever accepted."""

_REQUIRED_CLAIMS: Final[list[str]] = ["exp", "iat", "iss", "sub", "aud"]


class IdTokenVerifier:
    """Verifies Google ID tokens against a shared CertCache.

    Thread Safety:
        Not thread-safe; use from one event loop. Concurrent coroutines are
        serialized on the cache lock, which is held for the whole verification
        so that a refresh in progress is never bypassed.

    Attributes:
        _cache: Certificate cache shared by every verification.
        _opt: Immutable claim validation rules.
        _gate: Optional rate limiter enabling one forced refresh on unknown ``kid``.
    """

    def __init__(
        self,
        cache: CertCache,
        options: VerificationConfig,
        gate: RefreshGate | None = None,
    ) -> None:
        self._cache = cache
        self._opt = options
        self._gate = gate

    @property
    def options(self) -> VerificationConfig:
        return self._opt

    async def verify(self, token: str) -> IdTokenClaims:
        """Verify an ID token and return its claims.

        Args:
            token: Raw compact JWT as returned by Google Sign-In.

        Returns:
            IdTokenClaims of the first certificate that verifies the token.

        Raises:
            ConfigurationError: If no audience is configured.
            MalformedHeader: If the header cannot be decoded.
            UnknownKey: If the header names a ``kid`` that is not cached.
            ConnectionFailed: If certificates are needed and none could be fetched.
            InvalidToken: If no candidate verifies the signature and claims.
        """
        if not self._opt.audiences:
            raise ConfigurationError("No audiences configured; refusing to verify tokens")

        kid = self._read_kid(token)

        async with self._cache.lock:
            await self._ensure_fresh()
            for cert in await self._candidates(kid):
                claims = self._try_certificate(token, cert)
                if claims is not None:
                    return claims

        raise InvalidToken("Token could not be verified")

    @staticmethod
    def _read_kid(token: str) -> str | None:
        # Safe without a signature check: the kid only selects which key to try.
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise MalformedHeader("Token header could not be decoded") from e

        kid = header.get("kid")
        if kid is not None and not isinstance(kid, str):
            raise MalformedHeader("Token header 'kid' is not a string")
        return kid

    async def _ensure_fresh(self) -> None:
        try:
            await self._cache.refresh()
        except ConnectionFailed:
            if not self._cache.keys:
                raise
            # keep serving the last-known-good set until a refresh succeeds
            logger.warning(
                "Certificate refresh failed; using %d cached certificates",
                len(self._cache.keys),
            )

    async def _candidates(self, kid: str | None) -> Iterator[Certificate]:
        try:
            return self._cache.keys.candidates(kid)
        except UnknownKey:
            if self._gate is None or not self._gate.allow():
                raise
            logger.info("Unknown key id %r, forcing a certificate refresh", kid)

        try:
            await self._cache.refresh(force=True)
        except ConnectionFailed as e:
            raise UnknownKey(f"Unknown key id {kid!r}") from e
        return self._cache.keys.candidates(kid)

    def _try_certificate(self, token: str, cert: Certificate) -> IdTokenClaims | None:
        try:
            payload = jwt.decode(
                token,
                cert.signing_key(),
                algorithms=ALGORITHMS,
                audience=list(self._opt.audiences),
                leeway=self._opt.leeway,
                options={"require": _REQUIRED_CLAIMS},
            )
            claims = IdTokenClaims.from_payload(payload)
            claims.check(self._opt)
        except (jwt.PyJWTError, ValueError, InvalidToken) as e:
            logger.debug("Certificate %s rejected token: %s", cert.kid, e)
            return None
        return claims
