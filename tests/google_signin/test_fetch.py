import httpx
import pytest

import google_signin as m
from google_signin import fetch


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("public, max-age=19204, must-revalidate, no-transform", 19204),
        ("MAX-AGE=60", 60),
        ('max-age="120"', 120),
        ("max-age=0", 0),
        ("no-cache", None),
        ("max-age=-5", None),
        ("max-age=abc", None),
        ("max-age", None),
        ("max-age=1.5", None),
        ("max-age=\u00b2", None),
        ("max-age=\u0661\u0662", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_max_age(header: str | None, expected: int | None):
    assert m.parse_max_age(header) == expected


def test_fetch_response_ok_range():
    assert m.FetchResponse(200, b"").ok is True
    assert m.FetchResponse(204, b"").ok is True
    assert m.FetchResponse(304, b"").ok is False
    assert m.FetchResponse(500, b"").ok is False


def test_fetch_response_json_error_is_connection_failure():
    with pytest.raises(m.ConnectionFailed):
        m.FetchResponse(200, b"<html>").json()


def test_build_http_client_applies_connect_timeout():
    client = fetch.build_http_client(m.ClientConfig(connect_timeout=3.0))
    assert client.timeout.connect == 3.0
    assert client.timeout.read is None


@pytest.mark.asyncio
async def test_http_fetcher_reports_status_body_and_max_age():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"keys": []},
            headers={"Cache-Control": "public, max-age=300"},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = m.HttpFetcher(client=client)
        response = await fetcher.fetch("https://certs.test/v2", params={"a": "b"})

    assert response.status_code == 200
    assert response.max_age == 300
    assert response.json() == {"keys": []}
    assert seen[0].url.params["a"] == "b"


@pytest.mark.asyncio
async def test_http_fetcher_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = m.HttpFetcher(client=client)
        with pytest.raises(m.ConnectionFailed) as exc_info:
            await fetcher.fetch("https://certs.test/v2")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


@pytest.mark.asyncio
async def test_http_fetcher_does_not_close_borrowed_client():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    fetcher = m.HttpFetcher(client=client)

    await fetcher.aclose()
    assert client.is_closed is False

    await client.aclose()


@pytest.mark.asyncio
async def test_http_fetcher_closes_owned_client():
    fetcher = m.HttpFetcher(m.ClientConfig())
    await fetcher.aclose()
    assert fetcher._client.is_closed is True
