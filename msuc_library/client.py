"""Клиент Microsoft Update Catalog: поиск и карточки обновлений.

`Client` работает в блокирующем режиме, `AsyncClient` в неблокирующем.
Оба используют одни и те же детекторы, парсеры и трекер сессии; различается
только транспорт.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from .config import ClientConfig
from .debug import capture_debug_snapshot
from .detectors import (
    NO_RESULTS_DETECTOR_ID,
    NOT_DETECTED_STATE_ID,
    NOT_FOUND_DETECTOR_ID,
    SEARCH_RESULTS_DETECTOR_ID,
    SERVER_ERROR_DETECTOR_ID,
    detect_page_state,
    extract_error_code,
)
from .errors import CatalogServerError, MissingRequiredFieldError, NotFoundError, TransportError
from .models import UpdateDetails
from .parsers.details_parser import parse_update_details
from .parsers.fields import make_soup
from .search import AsyncSearchIterator, SearchIterator
from .transport import AsyncHttpxTransport, AsyncTransport, HttpxTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)

__all__ = ["Client", "AsyncClient", "new_client", "new_async_client"]

# Детекторы выдачи поиска на странице карточки не нужны
_DETAILS_SKIP = frozenset({SEARCH_RESULTS_DETECTOR_ID, NO_RESULTS_DETECTOR_ID})


def _details_url(config: ClientConfig, update_id: str) -> str:
    return f"{config.update_url}?updateid={quote(update_id, safe='')}"


def _details_from_response(update_id: str, response: TransportResponse) -> UpdateDetails:
    """Classifies a details response and parses it.

    Raises:
        NotFoundError: for 404/410 or a document without update markup.
        TransportError: for any other non-success status.
        CatalogServerError: for the catalog's error page.
        MissingRequiredFieldError: when the title or id cannot be found.
    """

    soup = make_soup(response.body)
    state_id = detect_page_state(soup, status=response.status, skip=_DETAILS_SKIP, logger=logger)

    if state_id == NOT_FOUND_DETECTOR_ID:
        raise NotFoundError(update_id)
    if not response.ok:
        raise TransportError(
            f"details {update_id!r}: HTTP {response.status}",
            status_code=response.status,
        )
    if state_id == SERVER_ERROR_DETECTOR_ID:
        raise CatalogServerError(extract_error_code(soup) or "")
    if state_id == NOT_DETECTED_STATE_ID:
        logger.info("No update markup for %s, treating as not found", update_id)
        raise NotFoundError(update_id)

    try:
        return parse_update_details(soup)
    except MissingRequiredFieldError:
        capture_debug_snapshot(response.body, label=f"details-{update_id}")
        raise


class Client:
    """Blocking catalog client; use as a context manager.

    When no transport is given, the client creates an `httpx.Client` from the
    config and closes it on exit. A caller-supplied transport stays open.
    """

    def __init__(self, config: Optional[ClientConfig] = None, *, transport: Optional[Transport] = None) -> None:
        self._config = config or ClientConfig.from_env()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport.from_config(self._config)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def search(self, query: str) -> SearchIterator:
        """Creates an independent search session; no request is sent yet."""
        return SearchIterator(self._transport, query, self._config.search_url)

    def details(self, update_id: str) -> UpdateDetails:
        response = self._transport.send("GET", _details_url(self._config, update_id))
        return _details_from_response(update_id, response)

    def close(self) -> None:
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            self._transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncClient:
    """Non-blocking catalog client; use with ``async with``."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[AsyncTransport] = None,
    ) -> None:
        self._config = config or ClientConfig.from_env()
        self._owns_transport = transport is None
        self._transport: AsyncTransport = transport or AsyncHttpxTransport.from_config(self._config)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def search(self, query: str) -> AsyncSearchIterator:
        return AsyncSearchIterator(self._transport, query, self._config.search_url)

    async def details(self, update_id: str) -> UpdateDetails:
        response = await self._transport.send("GET", _details_url(self._config, update_id))
        return _details_from_response(update_id, response)

    async def aclose(self) -> None:
        if self._owns_transport and isinstance(self._transport, AsyncHttpxTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def new_client(config: Optional[ClientConfig] = None, *, transport: Optional[Transport] = None) -> Client:
    """Blocking client. ``config`` defaults to `ClientConfig.from_env()`."""
    return Client(config, transport=transport)


def new_async_client(
    config: Optional[ClientConfig] = None,
    *,
    transport: Optional[AsyncTransport] = None,
) -> AsyncClient:
    return AsyncClient(config, transport=transport)
