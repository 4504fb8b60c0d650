"""Google sign-in client: the public entry point of the package.

Wires an HttpFetcher, a CertCache and an IdTokenVerifier together from the
given configuration. One client should live for the whole process so its
certificate cache is shared by every request.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Self

import httpx

from .cert_cache import CertCache
from .certs import KeyStore
from .claims import IdTokenClaims
from .config import ClientConfig, VerificationConfig, load_config
from .errors import ConnectionFailed, InvalidToken
from .fetch import HttpFetcher
from .protocols import Fetcher
from .refresh_gate import RefreshGate
from .verifier import IdTokenVerifier


class GoogleSignInClient:
    """Verifies Google ID tokens for a fixed set of OAuth client ids.

    Example:
        ```python
        async with GoogleSignInClient(audiences=["1234.apps.googleusercontent.com"]) as google:
            try:
                claims = await google.verify_token(raw_id_token)
            except UnknownKey:
                # token names a key Google no longer (or never) published
            except InvalidToken:
                # reject the sign-in
            print(claims.sub, claims.email)
        ```

    Args:
        audiences: Accepted ``aud`` values, merged into ``verification``.
        hosted_domains: Accepted ``hd`` values, merged into ``verification``.
        config: Transport and cache settings.
        verification: Claim rules; ``audiences``/``hosted_domains`` override its lists
            when given.
        http_client: AsyncClient to borrow instead of building one.
        fetcher: Any Fetcher implementation; takes precedence over ``http_client``.
    """

    def __init__(
        self,
        audiences: Iterable[str] = (),
        hosted_domains: Iterable[str] = (),
        *,
        config: ClientConfig | None = None,
        verification: VerificationConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._config = config or ClientConfig()

        verification = verification or VerificationConfig()
        audiences = tuple(audiences)
        hosted_domains = tuple(hosted_domains)
        self._verification = VerificationConfig(
            audiences=audiences or verification.audiences,
            hosted_domains=hosted_domains or verification.hosted_domains,
            issuers=verification.issuers,
            leeway=verification.leeway,
        )

        self._http: HttpFetcher | None = None
        if fetcher is None:
            self._http = HttpFetcher(self._config, client=http_client)
            fetcher = self._http
        self._fetcher = fetcher
        self._certs = CertCache(self._fetcher, self._config.certs_url)

        gate = None
        if self._config.refresh_on_unknown_kid:
            gate = RefreshGate(min_interval=self._config.min_refresh_interval)
        self._verifier = IdTokenVerifier(self._certs, self._verification, gate)

    @classmethod
    def from_env(cls, prefix: str = "GOOGLE_SIGNIN_", env_file: str | None = None) -> Self:
        """Build a client from ``load_config`` environment variables."""
        config, verification = load_config(prefix=prefix, env_file=env_file)
        return cls(config=config, verification=verification)

    @property
    def audiences(self) -> tuple[str, ...]:
        return self._verification.audiences

    @property
    def hosted_domains(self) -> tuple[str, ...]:
        return self._verification.hosted_domains

    @property
    def certs(self) -> CertCache:
        return self._certs

    @property
    def keys(self) -> KeyStore:
        return self._certs.keys

    async def refresh_if_needed(self) -> bool:
        """Refresh the certificate cache if stale. See CertCache.refresh_if_needed."""
        return await self._certs.refresh_if_needed()

    async def verify_token(self, token: str) -> IdTokenClaims:
        """Verify ``token`` locally against Google's cached certificates.

        Checks the RS256 signature, expiry, issuer, audience and, when
        configured, the hosted domain. See IdTokenVerifier.verify for errors.
        """
        return await self._verifier.verify(token)

    async def get_unverified(self, token: str) -> IdTokenClaims:
        """Ask Google's token info endpoint what it thinks of ``token``.

        WARNING:
            This is the slow, weaker path. Nothing is checked locally: not the
            signature, not the issuer, not the audience, not the hosted domain.
            The result is exactly what Google reports. Use it only if you accept
            trusting the endpoint and run ``IdTokenClaims.check`` yourself.

        Raises:
            ConnectionFailed: On transport failure or an undecodable body.
            InvalidToken: If the endpoint rejects the token (non-2xx status).
        """
        response = await self._fetcher.fetch(
            self._config.tokeninfo_url, params={"id_token": token}
        )
        if not response.ok:
            raise InvalidToken(f"Token info endpoint returned HTTP {response.status_code}")

        body = response.json()
        if not isinstance(body, dict):
            raise ConnectionFailed("Token info response is not a JSON object")
        try:
            return IdTokenClaims.from_payload(body)
        except ValueError as e:
            raise ConnectionFailed("Token info response could not be parsed") from e

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
