"""Router that selects the first matching page state detector."""

from __future__ import annotations

from logging import Logger
from typing import Callable, Dict, Final, Iterable, MutableSequence, Optional, Sequence

from bs4 import BeautifulSoup

from . import DETECTOR_DEFAULT_ORDER, DETECTOR_FUNCTIONS

__all__ = ["detect_page_state", "NOT_DETECTED_STATE_ID"]

DetectorResult = str | bool
DetectorFn = Callable[[], DetectorResult]

NOT_DETECTED_STATE_ID: Final[str] = "not_detected"

# Detectors that look at the HTTP status rather than at the markup.
_STATUS_DETECTORS: Final[frozenset[str]] = frozenset({"not_found_detector"})


def detect_page_state(
    soup: BeautifulSoup,
    *,
    status: Optional[int] = None,
    skip: Iterable[str] | None = None,
    priority: Sequence[str] | None = None,
    logger: Optional[Logger] = None,
) -> str:
    """Returns the identifier of the first detector that matches the document.

    Falls back to :data:`NOT_DETECTED_STATE_ID` when nothing matches.
    """

    skip_set = set(skip or ())
    detectors: Dict[str, DetectorFn] = {}

    for detector_id, detector_fn in DETECTOR_FUNCTIONS.items():
        if detector_id in _STATUS_DETECTORS:

            def _with_status(fn=detector_fn) -> DetectorResult:
                return fn(soup, status=status)

            detectors[detector_id] = _with_status
        else:

            def _with_logger(fn=detector_fn) -> DetectorResult:
                return fn(soup, logger=logger)

            detectors[detector_id] = _with_logger

    unknown_skips = skip_set - set(detectors.keys())
    if unknown_skips:
        raise ValueError(f"Unknown detectors in skip: {unknown_skips}")

    order: MutableSequence[str] = []
    if priority:
        for detector_id in priority:
            if detector_id not in detectors:
                raise ValueError(f"Unknown detector in priority: {detector_id}")
            if detector_id in skip_set or detector_id in order:
                continue
            order.append(detector_id)

    for default_id in DETECTOR_DEFAULT_ORDER:
        if default_id in skip_set or default_id in order:
            continue
        order.append(default_id)

    for detector_id in order:
        result = detectors[detector_id]()
        if result:
            return detector_id if result is True else str(result)

    return NOT_DETECTED_STATE_ID
