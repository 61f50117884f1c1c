"""Detector that confirms an update details document was rendered."""

from __future__ import annotations

from logging import Logger, getLogger
from typing import Final, Optional

from bs4 import BeautifulSoup

__all__ = ["DETECTOR_ID", "SELECTORS", "update_details_detector"]

DETECTOR_ID: Final[str] = "update_details_detector"
SELECTORS: Final[tuple[str, ...]] = (
    "#ScopedViewHandler_titleText",
    "#ScopedViewHandler_UpdateID",
    "#ScopedViewHandler_desc",
    "div#supersedesInfo",
    "span.labelTitle",
)


def update_details_detector(
    soup: BeautifulSoup,
    *,
    logger: Optional[Logger] = None,
) -> str | bool:
    """Returns `update_details_detector` when any details marker is present."""

    log = logger or getLogger(__name__)
    for selector in SELECTORS:
        if soup.select_one(selector) is not None:
            log.debug("Update details detected via selector %s", selector)
            return DETECTOR_ID
    return False
