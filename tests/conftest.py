from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from msuc_library.transport import TransportResponse

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def html_response(name: str, *, status: int = 200, cookies: dict | None = None) -> TransportResponse:
    return TransportResponse(
        status=status,
        headers={"content-type": "text/html; charset=utf-8"},
        body=read_fixture(name),
        cookies=cookies or {},
    )


class ScriptedTransport:
    """Replays prepared responses in order and records every request."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.requests: list[dict] = []

    def _next(self, method, url, form, cookies):
        self.requests.append(
            {
                "method": method,
                "url": url,
                "form": dict(form) if form is not None else None,
                "cookies": dict(cookies) if cookies is not None else None,
            }
        )
        if not self._responses:
            raise AssertionError(f"unexpected request {method} {url}")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def send(self, method, url, *, form=None, cookies=None):
        return self._next(method, url, form, cookies)


class AsyncScriptedTransport(ScriptedTransport):
    async def send(self, method, url, *, form=None, cookies=None):
        return self._next(method, url, form, cookies)


@pytest.fixture
def fixture_html() -> Callable[[str], str]:
    return read_fixture


@pytest.fixture
def scripted_transport() -> Callable[..., ScriptedTransport]:
    return ScriptedTransport


@pytest.fixture
def async_scripted_transport() -> Callable[..., AsyncScriptedTransport]:
    return AsyncScriptedTransport


@pytest.fixture
def response() -> Callable[..., TransportResponse]:
    return html_response
