"""Parsers for Microsoft Update Catalog search and details pages."""

from .details_parser import parse_reboot_behavior, parse_update_details
from .fields import parse_date, parse_kb, parse_size
from .search_parser import SearchPageParse, parse_search_page, parse_search_row

__all__ = [
    "SearchPageParse",
    "parse_search_page",
    "parse_search_row",
    "parse_update_details",
    "parse_reboot_behavior",
    "parse_date",
    "parse_kb",
    "parse_size",
]
