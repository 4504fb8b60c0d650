"""Configuration for the Google sign-in client.

Two immutable option objects are used:

- ClientConfig: where and how certificates and token info are fetched.
- VerificationConfig: what constitutes a valid ID token for your application.

Both can be built directly or loaded from the environment with ``load_config``,
which honours a ``.env`` file through python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

from .errors import ConfigurationError

GOOGLE_CERTS_URL: Final[str] = "https://www.googleapis.com/oauth2/v2/certs"
"""Google's public certificate distribution endpoint (JWK set)."""

GOOGLE_TOKENINFO_URL: Final[str] = "https://www.googleapis.com/oauth2/v3/tokeninfo"
"""Google's token introspection endpoint, used only by the unverified path."""

GOOGLE_ISSUERS: Final[tuple[str, ...]] = (
    "accounts.google.com",
    "https://accounts.google.com",
)
"""Both issuer spellings Google puts in the ``iss`` claim."""

_DEFAULT_CONNECT_TIMEOUT: Final[float] = 10.0
_DEFAULT_MIN_REFRESH_INTERVAL: Final[float] = 60.0


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Transport and cache settings.

    Attributes:
        certs_url: JWK set endpoint fetched by the certificate cache.
        tokeninfo_url: Introspection endpoint for ``get_unverified``.
        connect_timeout: Seconds allowed to establish a connection. Bounds how
            long a refresh can block concurrent verifiers.
        max_idle_connections: Idle keep-alive connections kept by the default
            httpx transport. 0 disables pooling between requests.
        refresh_on_unknown_kid: Force one rate-limited refresh when a token
            names a key id that is not cached, instead of failing immediately.
        min_refresh_interval: Minimum seconds between such forced refreshes.
    """

    certs_url: str = GOOGLE_CERTS_URL
    tokeninfo_url: str = GOOGLE_TOKENINFO_URL
    connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT
    max_idle_connections: int = 0
    refresh_on_unknown_kid: bool = False
    min_refresh_interval: float = _DEFAULT_MIN_REFRESH_INTERVAL

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ConfigurationError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )
        if self.max_idle_connections < 0:
            raise ConfigurationError(
                f"max_idle_connections must be >= 0, got {self.max_idle_connections}"
            )
        if self.min_refresh_interval <= 0:
            raise ConfigurationError(
                f"min_refresh_interval must be positive, got {self.min_refresh_interval}"
            )


@dataclass(frozen=True, slots=True)
class VerificationConfig:
    """Claim validation rules.

    Attributes:
        audiences: OAuth client ids the token may be issued to. The token's
            ``aud`` must match at least one. Must not be empty when verifying.
        hosted_domains: Allowed values of the ``hd`` claim. Empty means no
            domain restriction; otherwise ``hd`` must be present and listed.
        issuers: Accepted ``iss`` values.
        leeway: Clock skew tolerance in seconds for exp/nbf/iat.
    """

    audiences: tuple[str, ...] = ()
    hosted_domains: tuple[str, ...] = ()
    issuers: tuple[str, ...] = GOOGLE_ISSUERS
    leeway: int = 0

    def __post_init__(self) -> None:
        # accept any iterable of strings but store tuples so the config stays hashable
        object.__setattr__(self, "audiences", tuple(self.audiences))
        object.__setattr__(self, "hosted_domains", tuple(self.hosted_domains))
        object.__setattr__(self, "issuers", tuple(self.issuers))
        if self.leeway < 0:
            raise ConfigurationError(f"leeway must be >= 0, got {self.leeway}")


def _split(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config(
    prefix: str = "GOOGLE_SIGNIN_",
    env_file: str | None = None,
) -> tuple[ClientConfig, VerificationConfig]:
    """Build both configs from environment variables.

    Recognised variables (with the default prefix):
        GOOGLE_SIGNIN_AUDIENCES, GOOGLE_SIGNIN_HOSTED_DOMAINS (comma separated),
        GOOGLE_SIGNIN_LEEWAY, GOOGLE_SIGNIN_CERTS_URL, GOOGLE_SIGNIN_TOKENINFO_URL,
        GOOGLE_SIGNIN_CONNECT_TIMEOUT, GOOGLE_SIGNIN_REFRESH_ON_UNKNOWN_KID.

    Variables already present in the environment win over the ``.env`` file.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed.
    """
    load_dotenv(env_file)

    def env(name: str) -> str | None:
        return os.environ.get(f"{prefix}{name}")

    try:
        client = ClientConfig(
            certs_url=env("CERTS_URL") or GOOGLE_CERTS_URL,
            tokeninfo_url=env("TOKENINFO_URL") or GOOGLE_TOKENINFO_URL,
            connect_timeout=float(env("CONNECT_TIMEOUT") or _DEFAULT_CONNECT_TIMEOUT),
            refresh_on_unknown_kid=_flag(env("REFRESH_ON_UNKNOWN_KID")),
        )
        verification = VerificationConfig(
            audiences=_split(env("AUDIENCES")),
            hosted_domains=_split(env("HOSTED_DOMAINS")),
            leeway=int(env("LEEWAY") or 0),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid {prefix}* environment value: {e}") from e

    return client, verification
