import json
import time
from collections.abc import Callable
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

import jwt
from google_signin import FetchResponse

AUDIENCE = "client-1.apps.googleusercontent.com"


def _generate_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


# key generation is slow, share a few keys across the session
@pytest.fixture(scope="session")
def rsa_keys() -> dict[str, rsa.RSAPrivateKey]:
    return {kid: _generate_private_key() for kid in ("k1", "k2", "k3")}


@pytest.fixture
def make_jwk(rsa_keys: dict[str, rsa.RSAPrivateKey]) -> Callable[..., dict[str, str]]:
    """
    Factory fixture returning the public JWK for one of the session keys.

    Usage in tests:
        entry = make_jwk("k1")
        entry = make_jwk("k1", key="k2")   # publish k2's key material under kid k1
    """

    def _make(kid: str, *, key: str | None = None) -> dict[str, str]:
        public = rsa_keys[key or kid].public_key()
        jwk = json.loads(RSAAlgorithm.to_jwk(public))
        return {
            "kid": kid,
            "kty": "RSA",
            "alg": "RS256",
            "n": jwk["n"],
            "e": jwk["e"],
            "use": "sig",
        }

    return _make


@pytest.fixture
def make_token(rsa_keys: dict[str, rsa.RSAPrivateKey]) -> Callable[..., str]:
    """
    Factory fixture that signs an ID token with one of the session keys.

    Usage in tests:
        token = make_token(key="k1")                 # header kid "k1"
        token = make_token(key="k1", kid=None)       # no kid in header
        token = make_token(key="k1", hd="corp.com")  # extra/overridden claims
    """

    def _make(*, key: str = "k1", kid: str | None | object = ..., **claims: Any) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": "https://accounts.google.com",
            "aud": AUDIENCE,
            "sub": "110169484474386276334",
            "email": "user@example.com",
            "email_verified": True,
            "iat": now,
            "exp": now + 3600,
        }
        payload.update(claims)
        payload = {k: v for k, v in payload.items() if v is not None}

        header_kid = key if kid is ... else kid
        headers = {"kid": header_kid} if header_kid is not None else None
        return jwt.encode(payload, rsa_keys[key], algorithm="RS256", headers=headers)

    return _make


def jwks_response(
    *entries: dict[str, str], max_age: int | None = 3600, status_code: int = 200
) -> FetchResponse:
    return FetchResponse(
        status_code=status_code,
        content=json.dumps({"keys": list(entries)}).encode(),
        max_age=max_age,
    )


class FakeFetcher:
    """
    Duck-typed Fetcher replaying queued responses.

    The last queued response is repeated once the queue is exhausted. An
    exception instance in the queue is raised instead of returned.
    """

    def __init__(self, *responses: FetchResponse | Exception):
        self._responses = list(responses)
        self.calls: list[tuple[str, Any]] = []

    def push(self, *responses: FetchResponse | Exception) -> None:
        self._responses.extend(responses)

    async def fetch(self, url: str, params: Any = None) -> FetchResponse:
        self.calls.append((url, params))
        if len(self._responses) > 1:
            item = self._responses.pop(0)
        else:
            item = self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item
