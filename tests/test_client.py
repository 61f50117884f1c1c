"""End-to-end tests through the httpx transports with `httpx.MockTransport`."""

from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from msuc_library import (
    CatalogServerError,
    ClientConfig,
    NotFoundError,
    RebootBehavior,
    TransportError,
    new_async_client,
    new_client,
)
from msuc_library.transport import AsyncHttpxTransport, HttpxTransport

KNOWN_ID = "9397a21f-246c-453b-ac05-65bf4fc6b68b"
CONFIG = ClientConfig(base_url="https://catalog.test", user_agent="msuc-tests/1.0")


class CatalogStub:
    """Minimal stand-in for the catalog web UI."""

    def __init__(self, fixture_html):
        self.fixture_html = fixture_html
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/ScopedViewInline.aspx":
            update_id = request.url.params.get("updateid")
            if update_id == KNOWN_ID:
                return httpx.Response(200, text=self.fixture_html("update_details.html"))
            if update_id == "broken":
                return httpx.Response(200, text=self.fixture_html("error_page.html"))
            if update_id == "unknown-page":
                return httpx.Response(200, text=self.fixture_html("details_not_found.html"))
            if update_id == "server-down":
                return httpx.Response(502, text="Bad gateway")
            return httpx.Response(404, text="Not found")

        if request.url.path == "/Search.aspx":
            if request.method == "GET":
                return httpx.Response(
                    200,
                    text=self.fixture_html("search_page1.html"),
                    headers={"Set-Cookie": "ASP.NET_SessionId=abc123; path=/; HttpOnly"},
                )
            return httpx.Response(200, text=self.fixture_html("search_page2.html"))

        return httpx.Response(404)


@pytest.fixture
def catalog(fixture_html):
    return CatalogStub(fixture_html)


def test_details_through_httpx(catalog):
    transport = HttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(catalog))
    with new_client(CONFIG, transport=transport) as client:
        details = client.details(KNOWN_ID)
    transport.close()

    assert details.kb == "KB958644"
    assert details.classification == "Security Updates"
    assert [entry.title for entry in details.supersedes] == [
        "Security Update for Windows Server 2003 (KB921883)",
        "Security Update for Windows Server 2003 (KB923414)",
    ]
    assert details.reboot_behavior is RebootBehavior.CAN_REQUEST

    request = catalog.requests[0]
    assert request.method == "GET"
    assert str(request.url) == f"https://catalog.test/ScopedViewInline.aspx?updateid={KNOWN_ID}"
    assert request.headers["user-agent"] == "msuc-tests/1.0"


@pytest.mark.parametrize(
    ("update_id", "error"),
    [
        ("missing", NotFoundError),
        ("unknown-page", NotFoundError),
        ("broken", CatalogServerError),
        ("server-down", TransportError),
    ],
)
def test_details_errors(catalog, update_id, error):
    transport = HttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(catalog))
    client = new_client(CONFIG, transport=transport)
    with pytest.raises(error):
        client.details(update_id)
    transport.close()


def test_search_through_httpx_sends_session_cookie_and_tokens(catalog):
    transport = HttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(catalog))
    with new_client(CONFIG, transport=transport) as client:
        iterator = client.search("windows 10")
        assert catalog.requests == []
        pages = list(iterator)
    transport.close()

    assert [len(page) for page in pages] == [2, 1]
    get_request, post_request = catalog.requests
    assert get_request.url.params["q"] == "windows 10"
    assert "cookie" not in get_request.headers
    assert post_request.method == "POST"
    assert post_request.url.params["q"] == "windows 10"
    assert post_request.headers["cookie"] == "ASP.NET_SessionId=abc123"
    form = parse_qs(post_request.content.decode())
    assert form["__VIEWSTATE"] == ["VIEWSTATE-PAGE-1"]
    assert form["__EVENTTARGET"] == ["ctl00$catalogBody$nextPageLinkText"]


def test_cookies_do_not_leak_between_searches(catalog):
    transport = HttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(catalog))
    client = new_client(CONFIG, transport=transport)

    client.search("first").next_page()
    client.search("second").next_page()
    transport.close()

    assert all("cookie" not in request.headers for request in catalog.requests)


def test_async_client_search_and_details(catalog):
    async def run():
        transport = AsyncHttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(catalog))
        async with new_async_client(CONFIG, transport=transport) as client:
            details = await client.details(KNOWN_ID)
            pages = [page async for page in client.search("windows 10")]
        await transport.aclose()
        return details, pages

    details, pages = asyncio.run(run())

    assert details.id == KNOWN_ID
    assert [len(page) for page in pages] == [2, 1]
    assert catalog.requests[-1].headers["cookie"] == "ASP.NET_SessionId=abc123"


def test_connection_failure_becomes_transport_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpxTransport.from_config(CONFIG, transport=httpx.MockTransport(refuse))
    client = new_client(CONFIG, transport=transport)

    with pytest.raises(TransportError):
        client.search("MS08-067").next_page()
    with pytest.raises(TransportError):
        client.details(KNOWN_ID)
    transport.close()


def test_client_closes_only_its_own_transport():
    with new_client(CONFIG) as client:
        owned = client._transport
    assert owned._client.is_closed

    supplied = HttpxTransport(httpx.Client())
    with new_client(CONFIG, transport=supplied):
        pass
    assert not supplied._client.is_closed
    supplied._client.close()


def test_supplied_client_keeps_its_own_cookies(catalog):
    http_client = httpx.Client(transport=httpx.MockTransport(catalog), cookies={"tracking": "keep-me"})
    client = new_client(CONFIG, transport=HttpxTransport(http_client))

    client.search("first").next_page()

    assert http_client.cookies.get("tracking") == "keep-me"
    assert http_client.cookies.get("ASP.NET_SessionId") is None
    http_client.close()
