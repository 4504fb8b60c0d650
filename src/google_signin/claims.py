"""Typed view of a Google ID token payload.

The same structure is produced by local verification (JWT payload) and by the
token info endpoint, which reports times as numeric strings and
``email_verified`` as ``"true"``/``"false"``. ``from_payload`` accepts both.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import VerificationConfig
from .errors import InvalidToken

_KNOWN = frozenset(
    {
        "iss", "aud", "sub", "exp", "iat", "nbf", "azp", "hd", "email",
        "email_verified", "name", "picture", "given_name", "family_name", "locale",
    }
)


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise ValueError(f"'{name}' must be a number")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class IdTokenClaims:
    """Claims of a Google ID token. Produced fresh per call, never cached."""

    iss: str
    aud: tuple[str, ...]
    sub: str
    exp: int
    iat: int
    nbf: int | None = None
    azp: str | None = None
    hd: str | None = None
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    locale: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> IdTokenClaims:
        """Deserialize a decoded payload.

        Raises:
            ValueError: If a required claim is missing or has the wrong type.
        """
        iss = payload.get("iss")
        sub = payload.get("sub")
        if not isinstance(iss, str) or not isinstance(sub, str):
            raise ValueError("'iss' and 'sub' must be strings")

        aud = payload.get("aud")
        if isinstance(aud, str):
            audiences: tuple[str, ...] = (aud,)
        elif isinstance(aud, list) and all(isinstance(a, str) for a in aud):
            audiences = tuple(aud)
        else:
            raise ValueError("'aud' must be a string or a list of strings")

        nbf = payload.get("nbf")

        return cls(
            iss=iss,
            aud=audiences,
            sub=sub,
            exp=_as_int(payload.get("exp"), "exp"),
            iat=_as_int(payload.get("iat"), "iat"),
            nbf=None if nbf is None else _as_int(nbf, "nbf"),
            azp=_as_str(payload.get("azp")),
            hd=_as_str(payload.get("hd")),
            email=_as_str(payload.get("email")),
            email_verified=_as_bool(payload.get("email_verified")),
            name=_as_str(payload.get("name")),
            picture=_as_str(payload.get("picture")),
            given_name=_as_str(payload.get("given_name")),
            family_name=_as_str(payload.get("family_name")),
            locale=_as_str(payload.get("locale")),
            extra={k: v for k, v in payload.items() if k not in _KNOWN},
        )

    def check(self, config: VerificationConfig) -> None:
        """Enforce issuer, audience and hosted domain rules.

        Expiry is not checked here; the JWT primitive has already done it.

        Raises:
            InvalidToken: If any rule fails.
        """
        if self.iss not in config.issuers:
            raise InvalidToken("Issuer not accepted")

        if not set(self.aud).intersection(config.audiences):
            raise InvalidToken("Audience not accepted")

        if config.hosted_domains and self.hd not in config.hosted_domains:
            raise InvalidToken("Hosted domain not accepted")
