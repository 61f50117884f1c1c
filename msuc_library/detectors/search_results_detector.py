"""Detector for a search results page with the results table."""

from __future__ import annotations

from logging import Logger, getLogger
from typing import Final, Optional

from bs4 import BeautifulSoup

__all__ = [
    "DETECTOR_ID",
    "TABLE_CONTAINER_SELECTOR",
    "ROW_SELECTOR",
    "search_results_detector",
]

DETECTOR_ID: Final[str] = "search_results_detector"
TABLE_CONTAINER_SELECTOR: Final[str] = "div#tableContainer"
ROW_SELECTOR: Final[str] = "div#tableContainer tr"


def search_results_detector(
    soup: BeautifulSoup,
    *,
    logger: Optional[Logger] = None,
) -> str | bool:
    """Returns `search_results_detector` when the results container is present."""

    log = logger or getLogger(__name__)
    container = soup.select_one(TABLE_CONTAINER_SELECTOR)
    if container is None:
        return False
    rows_count = len(soup.select(ROW_SELECTOR))
    log.debug(
        "Search results page detected: container=%s rows=%d",
        TABLE_CONTAINER_SELECTOR,
        rows_count,
    )
    return DETECTOR_ID
