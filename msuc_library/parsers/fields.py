"""Extractors that turn catalog markup fragments into typed values.

Every helper has a defined fallback for absent nodes so that a single missing
cell never aborts a whole page.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger(__name__)

__all__ = [
    "HTML_PARSER",
    "NOT_AVAILABLE",
    "make_soup",
    "node_text",
    "select_text",
    "collapse_lines",
    "optional_text",
    "text_or_empty",
    "parse_date",
    "parse_size",
    "parse_yes_no",
    "parse_kb",
    "split_list",
    "text_outside",
    "label_text",
    "labeled_entries",
]

HTML_PARSER = "lxml"
# Заглушка, которую каталог выводит вместо пустого значения.
NOT_AVAILABLE = "n/a"

_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%Y-%m-%d")
_SIZE_RE = re.compile(r"^\s*([\d.,]+)\s*([KMGT]?B)?\b", re.IGNORECASE)
# "161,20" is a locale decimal comma; "1,024" is a thousands separator.
_DECIMAL_COMMA_RE = re.compile(r"^\d+,\d{1,2}$")
_SIZE_UNITS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}
_KB_RE = re.compile(r"\(KB(\d+)\)", re.IGNORECASE)


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, HTML_PARSER)


def node_text(node: Optional[Tag]) -> str:
    """Trimmed text content of a node, ``""`` when the node is absent."""
    if node is None:
        return ""
    return node.get_text().strip()


def select_text(root: Tag, selector: str) -> Optional[str]:
    """Trimmed text of the first node matching ``selector`` or ``None``."""
    node = root.select_one(selector)
    if node is None:
        return None
    return node_text(node)


def collapse_lines(text: Optional[str]) -> str:
    """Joins the non-empty trimmed lines of ``text`` with single spaces."""
    if not text:
        return ""
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


def optional_text(value: Optional[str]) -> Optional[str]:
    """``None`` for absent, empty or ``n/a`` values, the trimmed text otherwise."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() == NOT_AVAILABLE:
        return None
    return cleaned


def text_or_empty(value: Optional[str]) -> str:
    return optional_text(value) or ""


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parses the catalog's ``M/D/YYYY`` dates (ISO dates are accepted too)."""
    cleaned = optional_text(value)
    if cleaned is None:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    logger.debug("Unrecognised date %r", cleaned)
    return None


def parse_size(value: Optional[str]) -> Optional[int]:
    """Converts ``"161.20 MB"``-style text into bytes (1 KB = 1024 B).

    A bare number is taken as bytes. A comma followed by one or two digits is
    a decimal comma (``"161,20 MB"``), any other comma groups thousands.
    Returns ``None`` for anything else.
    """
    cleaned = optional_text(value)
    if cleaned is None:
        return None
    match = _SIZE_RE.match(cleaned)
    if not match:
        return None
    number_text = match.group(1)
    if _DECIMAL_COMMA_RE.match(number_text):
        number_text = number_text.replace(",", ".")
    else:
        number_text = number_text.replace(",", "")
    unit = (match.group(2) or "B").upper()
    try:
        number = Decimal(number_text)
    except InvalidOperation:
        return None
    return int(number * _SIZE_UNITS[unit])


def parse_yes_no(value: Optional[str]) -> bool:
    cleaned = (value or "").strip().lower()
    if cleaned == "yes":
        return True
    if cleaned not in {"", "no", NOT_AVAILABLE}:
        logger.warning("Unexpected yes/no value %r, treating as 'No'", value)
    return False


def parse_kb(title: Optional[str]) -> Optional[str]:
    """Extracts ``KBnnnnnn`` from a title like ``"... (KB958644)"``.

    The last occurrence wins, matching the catalog's habit of appending the
    article number at the end of the title.
    """
    if not title:
        return None
    matches = _KB_RE.findall(title)
    if not matches:
        return None
    return f"KB{matches[-1]}"


def split_list(text: Optional[str]) -> list[str]:
    """Splits a multi-valued block into entries, one per line.

    Separator-only lines (``,``) and the trailing comma of each entry are
    dropped. Source order and duplicates are preserved.
    """
    if not text:
        return []
    entries: list[str] = []
    for line in text.splitlines():
        entry = line.strip().rstrip(",").strip()
        if not entry or entry.lower() == NOT_AVAILABLE:
            continue
        entries.append(entry)
    return entries


def _strings_outside(container: Tag, exclude: Tag) -> Iterable[str]:
    for string in container.find_all(string=True):
        if isinstance(string, Comment):
            continue
        if any(parent is exclude for parent in string.parents):
            continue
        yield str(string)


def text_outside(container: Tag, exclude: Tag) -> str:
    """Text of ``container`` without the text of ``exclude``; the tree is left intact."""
    return "".join(_strings_outside(container, exclude))


def label_text(label_node: Tag) -> str:
    """Normalised label key: ``"Last Modified:"`` -> ``"last modified"``."""
    return " ".join(node_text(label_node).rstrip(":").split()).lower()


def labeled_entries(root: Tag, label_selector: str = "span.labelTitle") -> dict[str, tuple[Tag, str]]:
    """Maps every label on the page to its container and raw value text.

    The value is the container's text with the label itself removed, so field
    lookup does not depend on the position of the entry in the document. The
    first occurrence of a label wins.
    """
    entries: dict[str, tuple[Tag, str]] = {}
    for label_node in root.select(label_selector):
        key = label_text(label_node)
        container = label_node.parent
        if not key or container is None or key in entries:
            continue
        raw_value = text_outside(container, label_node)
        entries[key] = (container, raw_value)
    return entries
