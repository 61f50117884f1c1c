"""Tests for the search iterator state machine (both call modes)."""

from __future__ import annotations

import asyncio

import pytest

from msuc_library.errors import (
    CatalogServerError,
    ParseError,
    ProtocolError,
    TokensMissingError,
    TokensRejectedError,
    TransportError,
)
from msuc_library.models import SearchState
from msuc_library.search import AsyncSearchIterator, SearchIterator
from msuc_library.transport import TransportResponse

SEARCH_URL = "https://catalog.test/Search.aspx"


def test_single_page_search_then_none(scripted_transport, response):
    transport = scripted_transport([response("search_ms08_067.html")])
    iterator = SearchIterator(transport, "MS08-067", SEARCH_URL)
    assert iterator.state is SearchState.CREATED
    assert transport.requests == []

    page = iterator.next_page()

    assert page is not None
    assert len(page) == 2
    assert all(update.id and update.title for update in page)
    assert page.page_number == 1
    assert page.truncated is False
    assert iterator.state is SearchState.READY
    assert iterator.result_count == 2
    assert iterator.page_count == 1
    assert iterator.current_page == 1

    assert iterator.next_page() is None
    assert iterator.state is SearchState.EXHAUSTED
    assert iterator.next_page() is None
    assert len(transport.requests) == 1
    assert transport.requests[0]["method"] == "GET"
    assert transport.requests[0]["url"] == "https://catalog.test/Search.aspx?q=MS08-067"


def test_pages_chain_tokens_and_cookies(scripted_transport, response):
    transport = scripted_transport(
        [
            response("search_page1.html", cookies={"ASP.NET_SessionId": "abc"}),
            response("search_page2.html"),
        ]
    )
    iterator = SearchIterator(transport, "windows 10", SEARCH_URL)

    pages = list(iterator)

    assert [update.id for page in pages for update in page] == [
        "aaaaaaaa-0000-0000-0000-000000000001",
        "aaaaaaaa-0000-0000-0000-000000000002",
        "aaaaaaaa-0000-0000-0000-000000000003",
    ]
    assert [page.page_number for page in pages] == [1, 2]
    assert iterator.state is SearchState.EXHAUSTED
    assert iterator.has_next_page is False

    first_request, second_request = transport.requests
    assert first_request["method"] == "GET"
    assert first_request["cookies"] is None
    assert second_request["method"] == "POST"
    assert second_request["url"] == first_request["url"]
    assert second_request["form"]["__VIEWSTATE"] == "VIEWSTATE-PAGE-1"
    assert second_request["form"]["__EVENTVALIDATION"] == "VALIDATION-PAGE-1"
    assert second_request["form"]["__EVENTTARGET"] == "ctl00$catalogBody$nextPageLinkText"
    assert second_request["cookies"] == {"ASP.NET_SessionId": "abc"}


def test_empty_first_page_then_none(scripted_transport, response):
    transport = scripted_transport([response("search_no_results.html")])
    iterator = SearchIterator(transport, "zzzz-no-such-update", SEARCH_URL)

    page = iterator.next_page()

    assert page is not None
    assert len(page) == 0
    assert iterator.next_page() is None
    assert len(transport.requests) == 1


def test_empty_non_first_page_exhausts(scripted_transport, response):
    transport = scripted_transport([response("search_page1.html"), response("search_no_results.html")])
    iterator = SearchIterator(transport, "windows 10", SEARCH_URL)

    assert iterator.next_page() is not None
    assert iterator.next_page() is None
    assert iterator.state is SearchState.EXHAUSTED
    assert iterator.next_page() is None
    assert len(transport.requests) == 2


def test_truncated_banner_sets_page_flag(scripted_transport, response):
    iterator = SearchIterator(scripted_transport([response("search_truncated.html")]), "windows", SEARCH_URL)

    page = iterator.next_page()

    assert page.truncated is True
    assert iterator.too_many_results is True
    assert len(page) == 2


def test_missing_tokens_fail_and_stay_failed(scripted_transport, response):
    transport = scripted_transport([response("search_missing_tokens.html")])
    iterator = SearchIterator(transport, "windows 10", SEARCH_URL)

    with pytest.raises(TokensMissingError) as first:
        iterator.next_page()
    assert iterator.state is SearchState.FAILED

    with pytest.raises(TokensMissingError) as second:
        iterator.next_page()
    assert second.value is first.value
    assert len(transport.requests) == 1


def test_error_page_on_first_request_is_a_server_error(scripted_transport, response):
    iterator = SearchIterator(scripted_transport([response("error_page.html")]), "MS08-067", SEARCH_URL)

    with pytest.raises(CatalogServerError) as excinfo:
        iterator.next_page()

    assert excinfo.value.code == "8DDD0010"
    assert excinfo.value.status_code == 500
    assert "8DDD0010" in str(excinfo.value)


def test_error_page_after_postback_means_rejected_tokens(scripted_transport, response):
    transport = scripted_transport([response("search_page1.html"), response("error_page.html")])
    iterator = SearchIterator(transport, "windows 10", SEARCH_URL)

    iterator.next_page()
    with pytest.raises(TokensRejectedError) as excinfo:
        iterator.next_page()

    assert excinfo.value.code == "8DDD0010"
    assert excinfo.value.page_index == 1
    assert iterator.state is SearchState.FAILED


def test_http_error_status_fails(scripted_transport):
    transport = scripted_transport([TransportResponse(status=503, headers={}, body="busy")])
    iterator = SearchIterator(transport, "MS08-067", SEARCH_URL)

    with pytest.raises(TransportError) as excinfo:
        iterator.next_page()
    assert excinfo.value.status_code == 503


def test_transport_exception_is_not_retried(scripted_transport, response):
    failure = TransportError("connection reset")
    transport = scripted_transport([failure, response("search_ms08_067.html")])
    iterator = SearchIterator(transport, "MS08-067", SEARCH_URL)

    with pytest.raises(TransportError):
        iterator.next_page()
    with pytest.raises(TransportError) as excinfo:
        iterator.next_page()

    assert excinfo.value is failure
    assert len(transport.requests) == 1


def test_unrecognised_page_is_a_parse_error(scripted_transport, response):
    iterator = SearchIterator(scripted_transport([response("details_not_found.html")]), "MS08-067", SEARCH_URL)

    with pytest.raises(ParseError):
        iterator.next_page()
    assert iterator.state is SearchState.FAILED


def test_async_iterator_matches_blocking_behaviour(async_scripted_transport, response):
    transport = async_scripted_transport([response("search_page1.html"), response("search_page2.html")])
    iterator = AsyncSearchIterator(transport, "windows 10", SEARCH_URL)

    async def collect():
        return [page async for page in iterator]

    pages = asyncio.run(collect())

    assert [len(page) for page in pages] == [2, 1]
    assert iterator.state is SearchState.EXHAUSTED
    assert transport.requests[1]["form"]["__VIEWSTATE"] == "VIEWSTATE-PAGE-1"


def test_async_iterator_failure_is_idempotent(async_scripted_transport, response):
    transport = async_scripted_transport([response("search_missing_tokens.html")])
    iterator = AsyncSearchIterator(transport, "windows 10", SEARCH_URL)

    async def run():
        errors = []
        for _ in range(2):
            try:
                await iterator.next_page()
            except TokensMissingError as exc:
                errors.append(exc)
        return errors

    errors = asyncio.run(run())

    assert len(errors) == 2
    assert errors[0] is errors[1]
    assert len(transport.requests) == 1


def test_async_single_page_then_none(async_scripted_transport, response):
    transport = async_scripted_transport([response("search_ms08_067.html")])
    iterator = AsyncSearchIterator(transport, "MS08-067", SEARCH_URL)

    async def run():
        return await iterator.next_page(), await iterator.next_page()

    page, after = asyncio.run(run())

    assert len(page) == 2
    assert after is None


class _SlowTransport:
    """Answers only after yielding to the event loop."""

    def __init__(self, inner):
        self.inner = inner

    async def send(self, method, url, *, form=None, cookies=None):
        response = await self.inner.send(method, url, form=form, cookies=cookies)
        await asyncio.sleep(0.01)
        return response


def test_async_concurrent_next_page_calls_are_serialised(async_scripted_transport, response):
    transport = async_scripted_transport([response("search_page1.html"), response("search_page2.html")])
    iterator = AsyncSearchIterator(_SlowTransport(transport), "windows 10", SEARCH_URL)

    async def run():
        return await asyncio.gather(iterator.next_page(), iterator.next_page())

    first, second = asyncio.run(run())

    assert [update.id for update in first] == [
        "aaaaaaaa-0000-0000-0000-000000000001",
        "aaaaaaaa-0000-0000-0000-000000000002",
    ]
    assert [update.id for update in second] == ["aaaaaaaa-0000-0000-0000-000000000003"]
    assert [request["method"] for request in transport.requests] == ["GET", "POST"]
    assert transport.requests[1]["form"]["__VIEWSTATE"] == "VIEWSTATE-PAGE-1"


def test_next_page_during_a_fetch_is_refused(response):
    class ReentrantTransport:
        def __init__(self):
            self.calls = 0

        def send(self, method, url, *, form=None, cookies=None):
            self.calls += 1
            with pytest.raises(ProtocolError, match="already in flight"):
                iterator.next_page()
            return response("search_ms08_067.html")

    transport = ReentrantTransport()
    iterator = SearchIterator(transport, "MS08-067", SEARCH_URL)

    page = iterator.next_page()

    assert len(page) == 2
    assert transport.calls == 1
    assert iterator.state is SearchState.READY
