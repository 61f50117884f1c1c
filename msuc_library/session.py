"""Трекер postback-сессии поиска.

Остальной код не работает с полями WebForms напрямую: трекер собирает
запрос очередной страницы и извлекает из ответа новый набор токенов.
`SessionState` неизменяем, каждый переход возвращает новое значение.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import quote, urlencode

from bs4 import BeautifulSoup

from .errors import TokensMissingError
from .models import NEXT_PAGE_EVENT_TARGET, SessionState, TokenBundle
from .parsers.fields import make_soup
from .parsers.search_parser import SearchPageParse, next_page_event_target, parse_search_page

logger = logging.getLogger(__name__)

__all__ = [
    "PageRequest",
    "initialize",
    "build_request",
    "advance",
    "is_exhausted",
    "extract_tokens",
]

VIEW_STATE_FIELD = "__VIEWSTATE"
VIEW_STATE_GENERATOR_FIELD = "__VIEWSTATEGENERATOR"
EVENT_VALIDATION_FIELD = "__EVENTVALIDATION"
EVENT_ARGUMENT_FIELD = "__EVENTARGUMENT"


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Параметры HTTP-запроса очередной страницы."""

    method: str
    url: str
    form: Optional[dict[str, str]] = None
    cookies: Optional[Mapping[str, str]] = None


def initialize(query: str) -> SessionState:
    return SessionState(query=query)


def _query_url(search_url: str, query: str) -> str:
    return f"{search_url}?{urlencode({'q': query}, quote_via=quote)}"


def build_request(state: SessionState, search_url: str) -> PageRequest:
    """First page is a plain GET, every following page a postback to the same URL."""

    url = _query_url(search_url, state.query)
    cookies = dict(state.cookies) or None
    if state.tokens is None:
        return PageRequest(method="GET", url=url, cookies=cookies)
    return PageRequest(method="POST", url=url, form=state.tokens.as_form(), cookies=cookies)


def _hidden_value(soup: BeautifulSoup, name: str) -> Optional[str]:
    node = soup.find("input", id=name) or soup.find("input", attrs={"name": name})
    if node is None:
        return None
    value = node.get("value")
    return None if value is None else str(value)


def extract_tokens(soup: BeautifulSoup, *, query: str, page_index: int) -> Optional[TokenBundle]:
    """Token bundle for the next postback, ``None`` when there is no next page.

    Raises:
        TokensMissingError: when the page links to a next page but carries no
            ``__VIEWSTATE``.
    """

    event_target = next_page_event_target(soup)
    if event_target is None:
        return None

    view_state = _hidden_value(soup, VIEW_STATE_FIELD)
    if not view_state:
        raise TokensMissingError(VIEW_STATE_FIELD, query=query, page_index=page_index)

    return TokenBundle(
        event_target=event_target or NEXT_PAGE_EVENT_TARGET,
        view_state=view_state,
        event_validation=_hidden_value(soup, EVENT_VALIDATION_FIELD) or "",
        event_argument=_hidden_value(soup, EVENT_ARGUMENT_FIELD) or "",
        view_state_generator=_hidden_value(soup, VIEW_STATE_GENERATOR_FIELD) or "",
    )


def advance(
    state: SessionState,
    previous_response_body: str | BeautifulSoup,
    *,
    cookies: Optional[Mapping[str, str]] = None,
    parsed: Optional[SearchPageParse] = None,
) -> SessionState:
    """Returns the state for the page after the one in ``previous_response_body``.

    ``parsed`` lets the caller reuse an already parsed page.
    """

    soup = (
        previous_response_body
        if isinstance(previous_response_body, BeautifulSoup)
        else make_soup(previous_response_body)
    )
    page = parsed if parsed is not None else parse_search_page(soup)
    tokens = extract_tokens(soup, query=state.query, page_index=state.page_index)

    first_page = state.page_index == 0
    exhausted = not first_page and (page.no_results or not page.updates)

    merged_cookies = dict(state.cookies)
    if cookies:
        merged_cookies.update(cookies)

    next_state = replace(
        state,
        page_index=state.page_index + 1,
        tokens=tokens,
        has_next_page=tokens is not None,
        truncated=page.truncated,
        exhausted=exhausted,
        cookies=merged_cookies,
        result_count=page.result_count if page.result_count is not None else state.result_count,
        page_count=page.page_count if page.page_count is not None else state.page_count,
        current_page=page.current_page if page.current_page is not None else state.page_index + 1,
    )
    logger.debug(
        "Search %r advanced to page %s (next=%s, truncated=%s, exhausted=%s)",
        state.query,
        next_state.page_index,
        next_state.has_next_page,
        next_state.truncated,
        next_state.exhausted,
    )
    return next_state


def is_exhausted(state: SessionState) -> bool:
    """True once a fetched page reported no further rows or no next page."""

    if state.exhausted:
        return True
    return state.page_index > 0 and not state.has_next_page
