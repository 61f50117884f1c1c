"""Итератор страниц поиска.

Состояния: CREATED -> FETCHING -> READY -> ... -> EXHAUSTED | FAILED.

Вся логика живёт в `_SearchIteratorBase`: синхронный и асинхронный варианты
отличаются только вызовом транспорта. Повторных попыток нет: после ошибки
итератор остаётся в FAILED и на каждый вызов поднимает то же исключение.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Iterator, Optional

from .debug import capture_debug_snapshot
from .detectors import (
    NO_RESULTS_DETECTOR_ID,
    SEARCH_RESULTS_DETECTOR_ID,
    SERVER_ERROR_DETECTOR_ID,
    UPDATE_DETAILS_DETECTOR_ID,
    detect_page_state,
    extract_error_code,
)
from .errors import (
    CatalogServerError,
    MsucError,
    ParseError,
    ProtocolError,
    TokensMissingError,
    TokensRejectedError,
    TransportError,
)
from .models import Page, SearchState, SessionState
from .parsers.fields import make_soup
from .parsers.search_parser import parse_search_page
from .session import PageRequest, advance, build_request, initialize, is_exhausted
from .transport import AsyncTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)

__all__ = ["SearchIterator", "AsyncSearchIterator"]

# Состояния, после которых страница разбирается как выдача поиска
_RESULT_STATES = frozenset({SEARCH_RESULTS_DETECTOR_ID, NO_RESULTS_DETECTOR_ID})
_TERMINAL_STATES = frozenset({SearchState.EXHAUSTED, SearchState.FAILED})


class _SearchIteratorBase:
    """State machine shared by both call modes."""

    def __init__(self, query: str, search_url: str) -> None:
        self._search_url = search_url
        self._session: SessionState = initialize(query)
        self._state = SearchState.CREATED
        self._error: Optional[MsucError] = None

    # --- counters -------------------------------------------------------

    @property
    def query(self) -> str:
        return self._session.query

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def current_page(self) -> Optional[int]:
        return self._session.current_page

    @property
    def page_count(self) -> Optional[int]:
        return self._session.page_count

    @property
    def result_count(self) -> Optional[int]:
        return self._session.result_count

    @property
    def too_many_results(self) -> bool:
        """The catalog caps a search at 1000 results and says so with a banner."""
        return self._session.truncated

    @property
    def has_next_page(self) -> bool:
        if self._state in _TERMINAL_STATES:
            return False
        return not is_exhausted(self._session)

    # --- transitions ----------------------------------------------------

    def _check_terminal(self) -> bool:
        """True when the iterator can produce nothing more; re-raises a stored failure."""
        if self._state is SearchState.FAILED and self._error is not None:
            raise self._error
        if self._state is SearchState.FETCHING:
            # Page N+1 needs the tokens of page N.
            raise ProtocolError(f"search {self.query!r}: a page fetch is already in flight")
        if self._state is SearchState.EXHAUSTED:
            return True
        if is_exhausted(self._session):
            logger.debug("Search %r exhausted after %s page(s)", self.query, self._session.page_index)
            self._state = SearchState.EXHAUSTED
            return True
        return False

    def _begin(self) -> tuple[SearchState, PageRequest]:
        previous = self._state
        self._state = SearchState.FETCHING
        return previous, build_request(self._session, self._search_url)

    def _fail(self, error: MsucError) -> None:
        logger.warning("Search %r failed on page %s: %s", self.query, self._session.page_index + 1, error)
        self._state = SearchState.FAILED
        self._error = error

    def _complete(self, response: TransportResponse) -> Optional[Page]:
        page_index = self._session.page_index
        if not response.ok:
            raise TransportError(
                f"search {self.query!r} page {page_index + 1}: HTTP {response.status}",
                status_code=response.status,
            )

        soup = make_soup(response.body)
        state_id = detect_page_state(
            soup,
            status=response.status,
            skip={UPDATE_DETAILS_DETECTOR_ID},
            logger=logger,
        )

        if state_id == SERVER_ERROR_DETECTOR_ID:
            code = extract_error_code(soup) or ""
            if page_index == 0:
                raise CatalogServerError(code)
            raise TokensRejectedError(code, query=self.query, page_index=page_index)

        if state_id not in _RESULT_STATES:
            capture_debug_snapshot(response.body, label=f"search-{state_id}")
            raise ParseError(
                f"unrecognised search page for {self.query!r} (page {page_index + 1}, state {state_id})"
            )

        parsed = parse_search_page(soup)
        try:
            self._session = advance(self._session, soup, cookies=response.cookies, parsed=parsed)
        except TokensMissingError:
            capture_debug_snapshot(response.body, label="search-tokens-missing")
            raise

        if page_index > 0 and (parsed.no_results or not parsed.updates):
            self._state = SearchState.EXHAUSTED
            return None

        self._state = SearchState.READY
        return Page(
            updates=tuple(parsed.updates),
            truncated=parsed.truncated,
            page_number=self._session.current_page or self._session.page_index,
        )


class SearchIterator(_SearchIteratorBase):
    """Blocking iterator over result pages.

    >>> for page in client.search("MS08-067"):
    ...     for update in page:
    ...         print(update.id, update.title)
    """

    def __init__(self, transport: Transport, query: str, search_url: str) -> None:
        super().__init__(query, search_url)
        self._transport = transport

    def next_page(self) -> Optional[Page]:
        if self._check_terminal():
            return None
        previous, request = self._begin()
        try:
            response = self._transport.send(
                request.method,
                request.url,
                form=request.form,
                cookies=request.cookies,
            )
            return self._complete(response)
        except MsucError as exc:
            self._fail(exc)
            raise
        except BaseException:
            self._state = previous
            raise

    def __iter__(self) -> Iterator[Page]:
        while True:
            page = self.next_page()
            if page is None:
                return
            yield page


class AsyncSearchIterator(_SearchIteratorBase):
    """Non-blocking iterator; supports ``async for page in iterator``."""

    def __init__(self, transport: AsyncTransport, query: str, search_url: str) -> None:
        super().__init__(query, search_url)
        self._transport = transport
        self._lock = asyncio.Lock()

    async def next_page(self) -> Optional[Page]:
        """Concurrent callers are served one after another, each with the next page."""
        async with self._lock:
            if self._check_terminal():
                return None
            previous, request = self._begin()
            try:
                response = await self._transport.send(
                    request.method,
                    request.url,
                    form=request.form,
                    cookies=request.cookies,
                )
                return self._complete(response)
            except MsucError as exc:
                self._fail(exc)
                raise
            except BaseException:
                # Cancelled before the response arrived: session tokens are untouched.
                self._state = previous
                raise

    def __aiter__(self) -> AsyncIterator[Page]:
        return self

    async def __anext__(self) -> Page:
        page = await self.next_page()
        if page is None:
            raise StopAsyncIteration
        return page
