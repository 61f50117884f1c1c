"""Detector for a search that matched nothing."""

from __future__ import annotations

from logging import Logger, getLogger
from typing import Final, Optional

from bs4 import BeautifulSoup

__all__ = ["DETECTOR_ID", "SELECTOR", "no_results_detector"]

DETECTOR_ID: Final[str] = "no_results_detector"
SELECTOR: Final[str] = "#ctl00_catalogBody_noResultText"


def no_results_detector(
    soup: BeautifulSoup,
    *,
    logger: Optional[Logger] = None,
) -> str | bool:
    """Returns `no_results_detector` when the "did not find any results" text is shown.

    The span is present but hidden on regular result pages, so only a visible
    one counts.
    """

    log = logger or getLogger(__name__)
    node = soup.select_one(SELECTOR)
    if node is None:
        return False
    style = str(node.get("style") or "").replace(" ", "").lower()
    if "display:none" in style:
        return False
    log.info("Empty search result detected via selector %s", SELECTOR)
    return DETECTOR_ID
