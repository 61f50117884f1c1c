"""Парсер страницы результатов поиска (Search.aspx).

Каждая строка таблицы `div#tableContainer` превращается в `UpdateSummary`.
Ячейки адресуются по id вида ``<updateid>_C<колонка>_R<строка>``, поэтому
порядок колонок в разметке значения не имеет. Строка без id или заголовка
отбрасывается с предупреждением в лог, остальные строки страницы сохраняются.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..errors import MissingRequiredFieldError
from ..models import NEXT_PAGE_EVENT_TARGET, UpdateSummary
from .fields import (
    collapse_lines,
    make_soup,
    node_text,
    optional_text,
    parse_date,
    parse_kb,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SearchColumn",
    "SearchPageParse",
    "ROW_SELECTOR",
    "HEADER_ROW_ID",
    "NEXT_PAGE_SELECTOR",
    "TRUNCATED_SELECTOR",
    "NO_RESULTS_SELECTOR",
    "PAGINATION_SELECTOR",
    "parse_row_id",
    "parse_search_row",
    "parse_search_page",
    "is_truncated",
    "has_no_results",
    "next_page_event_target",
    "parse_pagination",
]

ROW_SELECTOR = "div#tableContainer tr"
HEADER_ROW_ID = "headerRow"
NEXT_PAGE_SELECTOR = "#ctl00_catalogBody_nextPageLinkText"
TRUNCATED_SELECTOR = "#ctl00_catalogBody_moreResults"
NO_RESULTS_SELECTOR = "#ctl00_catalogBody_noResultText"
PAGINATION_SELECTOR = "#ctl00_catalogBody_searchDuration"

_POSTBACK_RE = re.compile(r"__doPostBack\(\s*'([^']+)'")
# "Updates: 1 - 25 of 213 (page 1 of 9)"
_PAGINATION_RE = re.compile(
    r"of\s+([\d,]+)\s*\(\s*page\s+(\d+)\s+of\s+(\d+)\s*\)",
    re.IGNORECASE,
)


class SearchColumn(Enum):
    """Номера колонок таблицы результатов (часть id ячейки ``_C<n>``)."""

    TITLE = 1
    PRODUCT = 2
    CLASSIFICATION = 3
    LAST_UPDATED = 4
    VERSION = 5
    SIZE = 6


@dataclass(slots=True)
class SearchPageParse:
    """Результат разбора одной страницы поиска."""

    updates: list[UpdateSummary]
    truncated: bool
    has_next_page: bool
    no_results: bool = False
    dropped_rows: list[str] = field(default_factory=list)
    result_count: int | None = None
    page_count: int | None = None
    current_page: int | None = None


def parse_row_id(row_id: Optional[str]) -> Optional[tuple[str, str]]:
    """Splits ``"<updateid>_R<n>"`` into ``(updateid, n)``."""

    if not row_id:
        return None
    update_id, separator, row_number = row_id.rpartition("_R")
    if not separator or not update_id or not row_number.isdigit():
        return None
    return update_id, row_number


def _cell(row: Tag, update_id: str, row_number: str, column: SearchColumn) -> Optional[Tag]:
    # Lookup by attribute avoids CSS escaping of ids that start with a digit.
    return row.find("td", id=f"{update_id}_C{column.value}_R{row_number}")


def _cell_text(row: Tag, update_id: str, row_number: str, column: SearchColumn) -> str:
    return collapse_lines(node_text(_cell(row, update_id, row_number, column)))


def _size_values(cell: Optional[Tag]) -> tuple[str, Optional[int]]:
    """Visible size text and the exact byte count from the hidden span."""

    if cell is None:
        return "", None

    size_node = cell.find("span", id=lambda value: bool(value) and value.endswith("_size"))
    original_node = cell.find(
        "span",
        id=lambda value: bool(value) and value.endswith("_originalSize"),
    )

    if size_node is not None:
        size_text = node_text(size_node)
    else:
        lines = [line.strip() for line in cell.get_text().splitlines() if line.strip()]
        size_text = lines[0] if lines else ""

    original_size: Optional[int] = None
    if original_node is not None:
        digits = re.sub(r"\D", "", node_text(original_node))
        if digits:
            original_size = int(digits)

    return size_text, original_size


def parse_search_row(row: Tag) -> UpdateSummary:
    """Maps one results row to `UpdateSummary`.

    Raises:
        MissingRequiredFieldError: when the row has no parseable id or no title.
    """

    parsed_id = parse_row_id(row.get("id"))
    if parsed_id is None:
        raise MissingRequiredFieldError("id", context=f"row id {row.get('id')!r}")
    update_id, row_number = parsed_id

    title = _cell_text(row, update_id, row_number, SearchColumn.TITLE)
    if not title:
        raise MissingRequiredFieldError("title", context=f"update {update_id}")

    size, original_size = _size_values(_cell(row, update_id, row_number, SearchColumn.SIZE))

    return UpdateSummary(
        id=update_id,
        title=title,
        kb=parse_kb(title),
        product=_cell_text(row, update_id, row_number, SearchColumn.PRODUCT),
        classification=_cell_text(row, update_id, row_number, SearchColumn.CLASSIFICATION),
        last_modified=parse_date(_cell_text(row, update_id, row_number, SearchColumn.LAST_UPDATED)),
        version=optional_text(_cell_text(row, update_id, row_number, SearchColumn.VERSION)),
        size=size,
        original_size=original_size,
    )


def _is_shown(node: Optional[Tag]) -> bool:
    if node is None:
        return False
    style = str(node.get("style") or "").replace(" ", "").lower()
    return "display:none" not in style


def is_truncated(soup: BeautifulSoup) -> bool:
    """True only when the catalog shows its "refine your search" banner."""

    return _is_shown(soup.select_one(TRUNCATED_SELECTOR))


def has_no_results(soup: BeautifulSoup) -> bool:
    return _is_shown(soup.select_one(NO_RESULTS_SELECTOR))


def next_page_event_target(soup: BeautifulSoup) -> Optional[str]:
    """Control name to post back for the next page, ``None`` on the last page.

    The name is read from the link's ``__doPostBack`` call when present.
    """

    link = soup.select_one(NEXT_PAGE_SELECTOR)
    if link is None:
        return None
    match = _POSTBACK_RE.search(str(link.get("href") or ""))
    if match:
        return match.group(1)
    return NEXT_PAGE_EVENT_TARGET


def parse_pagination(soup: BeautifulSoup) -> tuple[Optional[int], Optional[int], Optional[int]]:
    """Returns ``(result_count, current_page, page_count)`` from the summary line."""

    text = collapse_lines(node_text(soup.select_one(PAGINATION_SELECTOR)))
    match = _PAGINATION_RE.search(text)
    if not match:
        return None, None, None
    result_count = int(match.group(1).replace(",", ""))
    return result_count, int(match.group(2)), int(match.group(3))


def parse_search_page(document: str | BeautifulSoup) -> SearchPageParse:
    """Parses every row of a results page, preserving display order."""

    soup = document if isinstance(document, BeautifulSoup) else make_soup(document)

    updates: list[UpdateSummary] = []
    dropped: list[str] = []
    for row in soup.select(ROW_SELECTOR):
        row_id = row.get("id")
        if row_id == HEADER_ROW_ID:
            continue
        try:
            updates.append(parse_search_row(row))
        except MissingRequiredFieldError as exc:
            logger.warning("Dropping malformed search result row: %s", exc)
            dropped.append(str(row_id or ""))

    result_count, current_page, page_count = parse_pagination(soup)

    return SearchPageParse(
        updates=updates,
        truncated=is_truncated(soup),
        has_next_page=next_page_event_target(soup) is not None,
        no_results=has_no_results(soup),
        dropped_rows=dropped,
        result_count=result_count,
        page_count=page_count,
        current_page=current_page,
    )
