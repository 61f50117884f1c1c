"""Update details parser (ScopedViewInline.aspx).

Fields are looked up by their label text (``"Last Modified:"``,
``"Supported products:"`` and so on) rather than by position, because the
catalog does not guarantee a stable order of entries. Well-known element ids
are used as a fallback when a label is missing.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

from ..errors import MissingRequiredFieldError
from ..models import RebootBehavior, SupersededByUpdate, SupersedesUpdate, UpdateDetails
from .fields import (
    collapse_lines,
    labeled_entries,
    make_soup,
    node_text,
    parse_date,
    parse_kb,
    parse_yes_no,
    select_text,
    split_list,
    text_or_empty,
    text_outside,
)

logger = logging.getLogger(__name__)

__all__ = [
    "FIELD_LABELS",
    "parse_update_details",
    "parse_reboot_behavior",
    "parse_supersedes",
    "parse_superseded_by",
]

TITLE_SELECTOR = "#ScopedViewHandler_titleText"
SUPERSEDES_SELECTOR = "div#supersedesInfo div"
SUPERSEDED_BY_SELECTOR = "div#supersededbyInfo a"
_UPDATE_LINK_PREFIX = "ScopedViewInline.aspx?updateid="

# Нормализованный текст метки -> поле UpdateDetails.
FIELD_LABELS: dict[str, str] = {
    "update id": "id",
    "last modified": "last_modified",
    "size": "size",
    "description": "description",
    "architecture": "architecture",
    "classification": "classification",
    "supported products": "supported_products",
    "supported languages": "supported_languages",
    "msrc number": "msrc_number",
    "msrc severity": "msrc_severity",
    "kb article numbers": "kb",
    "more information": "info_url",
    "support url": "support_url",
    "reboot behavior": "reboot_behavior",
    "may request user input": "requires_user_input",
    "must be installed exclusively": "is_exclusive_install",
    "requires network connectivity": "requires_network_connectivity",
    "uninstall notes": "uninstall_notes",
    "uninstall steps": "uninstall_steps",
}

# Запасные id элементов, если метка не найдена.
_FALLBACK_SELECTORS: dict[str, str] = {
    "id": "#ScopedViewHandler_UpdateID",
    "last_modified": "#ScopedViewHandler_date",
    "size": "#ScopedViewHandler_size",
    "description": "#ScopedViewHandler_desc",
    "architecture": "#archDiv",
    "classification": "#classificationDiv",
    "supported_products": "#productsDiv",
    "supported_languages": "#languagesDiv",
    "msrc_number": "#securityBullitenDiv",
    "msrc_severity": "#ScopedViewHandler_msrcSeverity",
    "kb": "#kbDiv",
    "info_url": "#moreInfoDiv",
    # The catalog itself misspells this id.
    "support_url": "#suportUrlDiv",
    "reboot_behavior": "#ScopedViewHandler_rebootBehavior",
    "requires_user_input": "#ScopedViewHandler_userInput",
    "is_exclusive_install": "#ScopedViewHandler_installationImpact",
    "requires_network_connectivity": "#ScopedViewHandler_connectivity",
    "uninstall_notes": "#uninstallNotesDiv div",
    "uninstall_steps": "#uninstallStepsDiv div",
}


class _DetailFields:
    """Label-indexed view over a details document."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self._soup = soup
        self._entries: dict[str, tuple[Tag, str]] = {}
        for label, (container, raw_value) in labeled_entries(soup).items():
            field_name = FIELD_LABELS.get(label)
            if field_name is None:
                logger.debug("Ignoring unknown details label %r", label)
                continue
            self._entries.setdefault(field_name, (container, raw_value))

    def raw(self, field_name: str) -> Optional[str]:
        """Raw multi-line value, ``None`` when neither label nor fallback exist."""
        entry = self._entries.get(field_name)
        if entry is not None:
            return entry[1]
        selector = _FALLBACK_SELECTORS.get(field_name)
        if selector is None:
            return None
        node = self._soup.select_one(selector)
        if node is None:
            return None
        label_node = node.select_one("span.labelTitle")
        if label_node is not None:
            return text_outside(node, label_node)
        return node.get_text()

    def text(self, field_name: str) -> str:
        return text_or_empty(collapse_lines(self.raw(field_name)))

    def block(self, field_name: str) -> str:
        """Trimmed raw value with its line breaks kept."""
        return text_or_empty(self.raw(field_name))

    def items(self, field_name: str) -> list[str]:
        return split_list(self.raw(field_name))

    def link(self, field_name: str) -> str:
        entry = self._entries.get(field_name)
        container = entry[0] if entry is not None else None
        if container is None and field_name in _FALLBACK_SELECTORS:
            container = self._soup.select_one(_FALLBACK_SELECTORS[field_name])
        if container is not None:
            anchor = container.find("a")
            if anchor is not None:
                href = str(anchor.get("href") or "").strip()
                return href or node_text(anchor)
        return self.text(field_name)


def parse_reboot_behavior(value: Optional[str]) -> RebootBehavior:
    cleaned = (value or "").strip()
    if not cleaned:
        return RebootBehavior.UNKNOWN
    for behavior in RebootBehavior:
        if behavior.value and behavior.value.lower() == cleaned.lower():
            return behavior
    logger.warning("Unknown reboot behavior %r", cleaned)
    return RebootBehavior.UNKNOWN


def _update_id_from_href(href: str) -> str:
    query = parse_qs(urlparse(href).query)
    values = query.get("updateid") or query.get("updateId")
    if values:
        return values[0]
    return href.split(_UPDATE_LINK_PREFIX, 1)[-1]


def parse_supersedes(soup: BeautifulSoup) -> list[SupersedesUpdate]:
    updates: list[SupersedesUpdate] = []
    for node in soup.select(SUPERSEDES_SELECTOR):
        title = text_or_empty(collapse_lines(node.get_text()))
        if not title:
            continue
        updates.append(SupersedesUpdate(title=title, kb=parse_kb(title)))
    return updates


def parse_superseded_by(soup: BeautifulSoup) -> list[SupersededByUpdate]:
    updates: list[SupersededByUpdate] = []
    for anchor in soup.select(SUPERSEDED_BY_SELECTOR):
        title = text_or_empty(collapse_lines(anchor.get_text()))
        if not title:
            continue
        href = str(anchor.get("href") or "")
        updates.append(
            SupersededByUpdate(
                title=title,
                kb=parse_kb(title),
                id=_update_id_from_href(href) if href else "",
            )
        )
    return updates


def _format_kb(value: str) -> str:
    if not value:
        return ""
    if value.upper().startswith("KB"):
        return value
    return f"KB{value}"


def parse_update_details(document: str | BeautifulSoup) -> UpdateDetails:
    """Parses a details document into `UpdateDetails`.

    Raises:
        MissingRequiredFieldError: when the title or the update id is absent.
    """

    soup = document if isinstance(document, BeautifulSoup) else make_soup(document)
    fields = _DetailFields(soup)

    title = collapse_lines(select_text(soup, TITLE_SELECTOR))
    if not title:
        raise MissingRequiredFieldError("title", context="update details")
    update_id = fields.text("id")
    if not update_id:
        raise MissingRequiredFieldError("id", context=f"update details for {title!r}")

    return UpdateDetails(
        id=update_id,
        title=title,
        kb=_format_kb(fields.text("kb")),
        classification=fields.text("classification"),
        last_modified=parse_date(fields.text("last_modified")),
        size=fields.text("size"),
        description=fields.block("description"),
        architecture=fields.text("architecture"),
        supported_products=fields.items("supported_products"),
        supported_languages=fields.items("supported_languages"),
        msrc_number=fields.text("msrc_number"),
        msrc_severity=fields.text("msrc_severity"),
        info_url=fields.link("info_url"),
        support_url=fields.link("support_url"),
        reboot_behavior=parse_reboot_behavior(fields.text("reboot_behavior")),
        requires_user_input=parse_yes_no(fields.text("requires_user_input")),
        is_exclusive_install=parse_yes_no(fields.text("is_exclusive_install")),
        requires_network_connectivity=parse_yes_no(fields.text("requires_network_connectivity")),
        uninstall_notes=fields.text("uninstall_notes"),
        uninstall_steps=fields.block("uninstall_steps"),
        supersedes=parse_supersedes(soup),
        superseded_by=parse_superseded_by(soup),
    )
