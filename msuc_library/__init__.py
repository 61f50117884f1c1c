"""Высокоуровневый API для `msuc-library`.

Пакет собирает воедино детекторы состояний страниц, парсеры выдачи и карточек
Microsoft Update Catalog и трекер postback-сессии WebForms. Поиск отдаётся
постранично через `SearchIterator` / `AsyncSearchIterator`, карточка
обновления через `Client.details`.
"""

from .client import AsyncClient, Client, new_async_client, new_client
from .config import ClientConfig, LIB_VERSION
from .detectors import (
    DETECTOR_DEFAULT_ORDER,
    DETECTOR_FUNCTIONS,
    NO_RESULTS_DETECTOR_ID,
    NOT_DETECTED_STATE_ID,
    NOT_FOUND_DETECTOR_ID,
    SEARCH_RESULTS_DETECTOR_ID,
    SERVER_ERROR_DETECTOR_ID,
    UPDATE_DETAILS_DETECTOR_ID,
    detect_page_state,
)
from .errors import (
    CatalogServerError,
    MissingRequiredFieldError,
    MsucError,
    NotFoundError,
    ParseError,
    ProtocolError,
    TokensMissingError,
    TokensRejectedError,
    TransportError,
)
from .models import (
    Page,
    RebootBehavior,
    SearchState,
    SessionState,
    SupersededByUpdate,
    SupersedesUpdate,
    TokenBundle,
    UpdateDetails,
    UpdateSummary,
)
from .parsers import parse_search_page, parse_update_details
from .search import AsyncSearchIterator, SearchIterator
from .transport import (
    AsyncHttpxTransport,
    HttpxTransport,
    PlaywrightTransport,
    TransportResponse,
)

__version__ = LIB_VERSION

__all__ = [
    "__version__",
    "Client",
    "AsyncClient",
    "new_client",
    "new_async_client",
    "ClientConfig",
    "SearchIterator",
    "AsyncSearchIterator",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "PlaywrightTransport",
    "TransportResponse",
    "detect_page_state",
    "DETECTOR_FUNCTIONS",
    "DETECTOR_DEFAULT_ORDER",
    "NOT_DETECTED_STATE_ID",
    "NO_RESULTS_DETECTOR_ID",
    "NOT_FOUND_DETECTOR_ID",
    "SEARCH_RESULTS_DETECTOR_ID",
    "SERVER_ERROR_DETECTOR_ID",
    "UPDATE_DETAILS_DETECTOR_ID",
    "parse_search_page",
    "parse_update_details",
    "Page",
    "RebootBehavior",
    "SearchState",
    "SessionState",
    "SupersededByUpdate",
    "SupersedesUpdate",
    "TokenBundle",
    "UpdateDetails",
    "UpdateSummary",
    "MsucError",
    "TransportError",
    "CatalogServerError",
    "ProtocolError",
    "TokensMissingError",
    "TokensRejectedError",
    "ParseError",
    "MissingRequiredFieldError",
    "NotFoundError",
]
