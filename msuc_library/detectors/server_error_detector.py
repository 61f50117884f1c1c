"""Detector for the catalog's own error page served with HTTP 200."""

from __future__ import annotations

from logging import Logger, getLogger
from typing import Final, Optional

from bs4 import BeautifulSoup

__all__ = [
    "DETECTOR_ID",
    "SELECTOR",
    "extract_error_code",
    "server_error_detector",
]

DETECTOR_ID: Final[str] = "server_error_detector"
SELECTOR: Final[str] = "div#errorPageDisplayedError"
_CODE_PREFIX: Final[str] = "[Error number:"


def extract_error_code(soup: BeautifulSoup) -> Optional[str]:
    """Returns ``8DDD0010`` for a block reading ``[Error number: 8DDD0010]``."""

    node = soup.select_one(SELECTOR)
    if node is None:
        return None
    text = node.get_text().strip()
    if text.startswith(_CODE_PREFIX):
        text = text[len(_CODE_PREFIX):]
    return text.rstrip("]").strip()


def server_error_detector(
    soup: BeautifulSoup,
    *,
    logger: Optional[Logger] = None,
) -> str | bool:
    """Returns `server_error_detector` when the error block is rendered."""

    log = logger or getLogger(__name__)
    if soup.select_one(SELECTOR) is None:
        return False
    log.info("Catalog error page detected: code=%s", extract_error_code(soup))
    return DETECTOR_ID
