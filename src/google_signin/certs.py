"""Google signing certificates and the key store built from them.

A KeyStore is created wholesale from each successful certificate fetch and is
never mutated afterwards; the certificate cache swaps in a new store instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jwt import PyJWK

from .errors import ConnectionFailed, UnknownKey

if TYPE_CHECKING:
    from jwt.algorithms import AllowedPublicKeys

_REQUIRED_FIELDS = ("kid", "kty", "alg", "n", "e", "use")


@dataclass(frozen=True, slots=True)
class Certificate:
    """One JWK-style entry from Google's certificate endpoint.

    Attributes:
        kid: Key identifier, unique within one fetch.
        kty: Key type (always "RSA" for Google).
        alg: Signing algorithm (always "RS256" for Google).
        n: Base64url RSA modulus.
        e: Base64url RSA exponent.
        use: Intended use ("sig").
    """

    kid: str
    kty: str
    alg: str
    n: str
    e: str
    use: str

    @classmethod
    def from_jwk(cls, data: Mapping[str, Any]) -> Certificate:
        """Build a certificate from one element of the ``keys`` array.

        Raises:
            ConnectionFailed: If a field is missing or is not a string.
        """
        try:
            values = {name: data[name] for name in _REQUIRED_FIELDS}
        except (KeyError, TypeError) as e:
            raise ConnectionFailed("Certificate entry is missing a required field") from e

        if not all(isinstance(v, str) for v in values.values()):
            raise ConnectionFailed("Certificate entry has a non-string field")

        return cls(**values)

    def to_jwk(self) -> dict[str, str]:
        return {
            "kid": self.kid,
            "kty": self.kty,
            "alg": self.alg,
            "n": self.n,
            "e": self.e,
            "use": self.use,
        }

    def signing_key(self) -> AllowedPublicKeys:
        """Return the RSA public key for signature verification.

        Raises:
            jwt.PyJWKError: If the modulus or exponent cannot be decoded.
        """
        return PyJWK.from_dict(self.to_jwk(), algorithm="RS256").key


class KeyStore:
    """Immutable mapping of ``kid`` to Certificate, iterated in ``kid`` order.

    Example:
        ```python
        store = KeyStore.from_certificates(certs)
        for cert in store.candidates(header.get("kid")):
            ...
        ```
    """

    __slots__ = ("_certs",)

    def __init__(self, certs: Mapping[str, Certificate] | None = None) -> None:
        self._certs: dict[str, Certificate] = dict(sorted((certs or {}).items()))

    @classmethod
    def from_certificates(cls, certs: Iterable[Certificate]) -> KeyStore:
        """Build a store; when a ``kid`` repeats, the last certificate wins."""
        by_kid: dict[str, Certificate] = {}
        for cert in certs:
            by_kid[cert.kid] = cert
        return cls(by_kid)

    @classmethod
    def from_jwks(cls, body: Any) -> KeyStore:
        """Parse a ``{"keys": [...]}`` document.

        Raises:
            ConnectionFailed: If the document does not have the expected shape.
        """
        if not isinstance(body, Mapping) or not isinstance(body.get("keys"), list):
            raise ConnectionFailed("Certificate document has no 'keys' list")
        return cls.from_certificates(Certificate.from_jwk(entry) for entry in body["keys"])

    def get(self, kid: str) -> Certificate | None:
        return self._certs.get(kid)

    def kids(self) -> list[str]:
        return list(self._certs)

    def candidates(self, kid: str | None) -> Iterator[Certificate]:
        """Select the certificates worth trying for a token.

        Args:
            kid: Key id from the token header, or None if the header has none.

        Returns:
            A one-element iterator when ``kid`` is known, or a lazy iterator
            over every certificate in ``kid`` order when ``kid`` is None.

        Raises:
            UnknownKey: If ``kid`` is given but not in the store. The caller
                must not fall back to guessing among unrelated keys.
        """
        if kid is None:
            return iter(self._certs.values())

        cert = self._certs.get(kid)
        if cert is None:
            raise UnknownKey(f"Unknown key id {kid!r}")
        return iter((cert,))

    def __contains__(self, kid: object) -> bool:
        return kid in self._certs

    def __iter__(self) -> Iterator[Certificate]:
        return iter(self._certs.values())

    def __len__(self) -> int:
        return len(self._certs)

    def __bool__(self) -> bool:
        return bool(self._certs)

    def __repr__(self) -> str:
        return f"KeyStore(kids={self.kids()!r})"
