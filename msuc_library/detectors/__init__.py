"""Registry of detector implementations for catalog page state detection."""

from __future__ import annotations

from typing import Callable

from .no_results_detector import (
    DETECTOR_ID as NO_RESULTS_DETECTOR_ID,
    no_results_detector,
)
from .not_found_detector import (
    DETECTOR_ID as NOT_FOUND_DETECTOR_ID,
    not_found_detector,
)
from .search_results_detector import (
    DETECTOR_ID as SEARCH_RESULTS_DETECTOR_ID,
    search_results_detector,
)
from .server_error_detector import (
    DETECTOR_ID as SERVER_ERROR_DETECTOR_ID,
    extract_error_code,
    server_error_detector,
)
from .update_details_detector import (
    DETECTOR_ID as UPDATE_DETAILS_DETECTOR_ID,
    update_details_detector,
)

DetectorCallable = Callable[..., object]

DETECTOR_FUNCTIONS: dict[str, DetectorCallable] = {
    SERVER_ERROR_DETECTOR_ID: server_error_detector,
    NOT_FOUND_DETECTOR_ID: not_found_detector,
    NO_RESULTS_DETECTOR_ID: no_results_detector,
    SEARCH_RESULTS_DETECTOR_ID: search_results_detector,
    UPDATE_DETAILS_DETECTOR_ID: update_details_detector,
}

DETECTOR_DEFAULT_ORDER: tuple[str, ...] = (
    SERVER_ERROR_DETECTOR_ID,
    NOT_FOUND_DETECTOR_ID,
    NO_RESULTS_DETECTOR_ID,
    SEARCH_RESULTS_DETECTOR_ID,
    UPDATE_DETAILS_DETECTOR_ID,
)

from .detect_page_state import NOT_DETECTED_STATE_ID, detect_page_state  # noqa: E402

__all__ = [
    "DETECTOR_FUNCTIONS",
    "DETECTOR_DEFAULT_ORDER",
    "detect_page_state",
    "extract_error_code",
    "NOT_DETECTED_STATE_ID",
    "NO_RESULTS_DETECTOR_ID",
    "NOT_FOUND_DETECTOR_ID",
    "SEARCH_RESULTS_DETECTOR_ID",
    "SERVER_ERROR_DETECTOR_ID",
    "UPDATE_DETAILS_DETECTOR_ID",
]
