"""Runtime configuration for the catalog client.

Defaults can be overridden through environment variables, which keeps test runs
against a mock server free of code changes:

- ``MSUC_BASE_URL``: catalog root (``https://www.catalog.update.microsoft.com``);
- ``MSUC_USER_AGENT``: value of the ``User-Agent`` header;
- ``MSUC_TIMEOUT``: request timeout in seconds;
- ``MSUC_PROXY``: optional proxy URL handed to httpx.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "LIB_VERSION",
    "SEARCH_PATH",
    "UPDATE_PATH",
    "ClientConfig",
]

LIB_VERSION: Final[str] = "1.0.0"
DEFAULT_BASE_URL: Final[str] = "https://www.catalog.update.microsoft.com"
DEFAULT_USER_AGENT: Final[str] = f"msuc-library/{LIB_VERSION}"
DEFAULT_TIMEOUT: Final[float] = 30.0

SEARCH_PATH: Final[str] = "Search.aspx"
UPDATE_PATH: Final[str] = "ScopedViewInline.aspx"


def _read_str_env(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _read_positive_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Options recognised by `new_client` / `new_async_client`."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    proxy: str | None = None
    follow_redirects: bool = True

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Builds a config from ``MSUC_*`` variables, falling back to defaults."""
        return cls(
            base_url=_read_str_env("MSUC_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
            user_agent=_read_str_env("MSUC_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT,
            timeout=_read_positive_float_env("MSUC_TIMEOUT", DEFAULT_TIMEOUT),
            proxy=_read_str_env("MSUC_PROXY", None),
        )

    @property
    def search_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{SEARCH_PATH}"

    @property
    def update_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{UPDATE_PATH}"
