"""Detector for updates the catalog does not know about."""

from __future__ import annotations

from typing import Final, Optional

from bs4 import BeautifulSoup

__all__ = [
    "DETECTOR_ID",
    "NOT_FOUND_STATUSES",
    "not_found_detector",
]

DETECTOR_ID: Final[str] = "not_found_detector"
NOT_FOUND_STATUSES: Final[frozenset[int]] = frozenset({404, 410})


def not_found_detector(
    soup: BeautifulSoup,
    *,
    status: Optional[int] = None,
) -> str | bool:
    """Returns `not_found_detector` for 404/410 responses."""

    if status in NOT_FOUND_STATUSES:
        return DETECTOR_ID
    return False
