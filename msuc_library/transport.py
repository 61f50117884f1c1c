"""HTTP transports for the catalog client.

A transport performs exactly one request and returns the fully read body. It
does not keep cookies between calls: the search session passes its own cookies
with every request, so concurrent searches never see each other's state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Mapping, Optional, Protocol

import httpx
from playwright.async_api import APIRequestContext, Error as PlaywrightError

from .config import ClientConfig
from .errors import TransportError


# Отключаем излишнее логирование HTTP-запросов от httpx
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

__all__ = [
    "TransportResponse",
    "Transport",
    "AsyncTransport",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "PlaywrightTransport",
]


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Полностью прочитанный HTTP-ответ."""

    status: int
    headers: Mapping[str, str]
    body: str
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse: ...


class AsyncTransport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse: ...


def _cookie_header(cookies: Optional[Mapping[str, str]]) -> dict[str, str]:
    if not cookies:
        return {}
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def _httpx_options(config: ClientConfig) -> dict[str, object]:
    options: dict[str, object] = {
        "timeout": config.timeout,
        "follow_redirects": config.follow_redirects,
        "headers": {"User-Agent": config.user_agent},
    }
    if config.proxy:
        options["proxy"] = config.proxy
    return options


def _from_httpx(response: httpx.Response) -> TransportResponse:
    return TransportResponse(
        status=response.status_code,
        headers=dict(response.headers),
        body=response.text,
        cookies=dict(response.cookies),
    )


class HttpxTransport:
    """Blocking transport over `httpx.Client`.

    A client passed in by the caller stays open on `close()`.
    """

    def __init__(self, client: httpx.Client, *, owns_client: bool = False) -> None:
        self._client = client
        self._owns_client = owns_client

    @classmethod
    def from_config(cls, config: ClientConfig, **client_kwargs) -> "HttpxTransport":
        options = _httpx_options(config)
        options.update(client_kwargs)
        return cls(httpx.Client(**options), owns_client=True)

    def send(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        logger.debug("%s %s", method, url)
        saved = httpx.Cookies(self._client.cookies)
        try:
            response = self._client.request(
                method,
                url,
                data=dict(form) if form is not None else None,
                headers=_cookie_header(cookies),
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        finally:
            # Drop what the response set; keep whatever the jar held before.
            self._client.cookies = saved
        return _from_httpx(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class AsyncHttpxTransport:
    """Non-blocking transport over `httpx.AsyncClient`."""

    def __init__(self, client: httpx.AsyncClient, *, owns_client: bool = False) -> None:
        self._client = client
        self._owns_client = owns_client

    @classmethod
    def from_config(cls, config: ClientConfig, **client_kwargs) -> "AsyncHttpxTransport":
        options = _httpx_options(config)
        options.update(client_kwargs)
        return cls(httpx.AsyncClient(**options), owns_client=True)

    async def send(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        logger.debug("%s %s", method, url)
        saved = httpx.Cookies(self._client.cookies)
        try:
            response = await self._client.request(
                method,
                url,
                data=dict(form) if form is not None else None,
                headers=_cookie_header(cookies),
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        finally:
            # Drop what the response set; keep whatever the jar held before.
            self._client.cookies = saved
        return _from_httpx(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _set_cookies(headers_array: list[dict[str, str]]) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for header in headers_array:
        if header.get("name", "").lower() != "set-cookie":
            continue
        jar = SimpleCookie()
        try:
            jar.load(header.get("value", ""))
        except CookieError:
            logger.debug("Skipping malformed Set-Cookie header %r", header.get("value"))
            continue
        for name, morsel in jar.items():
            cookies[name] = morsel.value
    return cookies


class PlaywrightTransport:
    """Non-blocking transport over a Playwright `APIRequestContext`.

    Useful when the caller already drives a browser context (``page.request``
    or ``context.request``); the context is never closed here.
    """

    def __init__(self, request_context: APIRequestContext, *, timeout: float | None = None) -> None:
        self._request = request_context
        self._timeout_ms = timeout * 1000 if timeout is not None else None

    async def send(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        logger.debug("%s %s (playwright)", method, url)
        options: dict[str, object] = {"method": method, "headers": _cookie_header(cookies)}
        if form is not None:
            options["form"] = dict(form)
        if self._timeout_ms is not None:
            options["timeout"] = self._timeout_ms
        try:
            response = await self._request.fetch(url, **options)
            try:
                body = await response.text()
                return TransportResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                    cookies=_set_cookies(response.headers_array),
                )
            finally:
                await response.dispose()
        except PlaywrightError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    async def aclose(self) -> None:
        """The request context belongs to the caller."""
