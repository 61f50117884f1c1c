"""Модели данных каталога обновлений и состояние поисковой сессии."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, Mapping

__all__ = [
    "RebootBehavior",
    "SearchState",
    "UpdateSummary",
    "SupersedesUpdate",
    "SupersededByUpdate",
    "UpdateDetails",
    "TokenBundle",
    "SessionState",
    "Page",
    "NEXT_PAGE_EVENT_TARGET",
]

# Имя серверного контрола ссылки «Next», которое уходит в __EVENTTARGET.
NEXT_PAGE_EVENT_TARGET = "ctl00$catalogBody$nextPageLinkText"


class RebootBehavior(str, Enum):
    """Поведение перезагрузки; значения совпадают с текстом на странице."""

    REQUIRED = "Required"
    CAN_REQUEST = "Can request restart"
    RECOMMENDED = "Recommended"
    NOT_REQUIRED = "Not required"
    NEVER_RESTARTS = "Never restarts"
    UNKNOWN = ""


class SearchState(Enum):
    """Состояния итератора поиска."""

    CREATED = "created"
    FETCHING = "fetching"
    READY = "ready"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UpdateSummary:
    """Строка таблицы результатов поиска."""

    id: str
    title: str
    kb: str | None
    product: str
    classification: str
    last_modified: date | None
    version: str | None
    size: str
    original_size: int | None = None

    @property
    def size_bytes(self) -> int | None:
        """Точный размер из скрытой ячейки, иначе разбор текстового `size`."""
        if self.original_size is not None:
            return self.original_size
        from .parsers.fields import parse_size

        return parse_size(self.size)


@dataclass(frozen=True, slots=True)
class SupersedesUpdate:
    """Обновление, которое заменяет текущее."""

    title: str
    kb: str | None


@dataclass(frozen=True, slots=True)
class SupersededByUpdate:
    """Обновление, которым заменено текущее."""

    title: str
    kb: str | None
    id: str


@dataclass(frozen=True, slots=True)
class UpdateDetails:
    """Полная карточка обновления (ScopedViewInline.aspx)."""

    id: str
    title: str
    kb: str
    classification: str
    last_modified: date | None
    size: str
    description: str
    architecture: str
    supported_products: list[str]
    supported_languages: list[str]
    msrc_number: str
    msrc_severity: str
    info_url: str
    support_url: str
    reboot_behavior: RebootBehavior
    requires_user_input: bool
    is_exclusive_install: bool
    requires_network_connectivity: bool
    uninstall_notes: str
    uninstall_steps: str
    supersedes: list[SupersedesUpdate]
    superseded_by: list[SupersededByUpdate]

    @property
    def size_bytes(self) -> int | None:
        from .parsers.fields import parse_size

        return parse_size(self.size)


@dataclass(frozen=True, slots=True)
class TokenBundle:
    """Скрытые поля WebForms, которые сервер требует в каждом postback."""

    event_target: str
    view_state: str
    event_validation: str = ""
    event_argument: str = ""
    view_state_generator: str = ""

    def as_form(self) -> dict[str, str]:
        return {
            "__EVENTTARGET": self.event_target,
            "__EVENTARGUMENT": self.event_argument,
            "__VIEWSTATE": self.view_state,
            "__VIEWSTATEGENERATOR": self.view_state_generator,
            "__EVENTVALIDATION": self.event_validation,
        }


@dataclass(frozen=True, slots=True)
class SessionState:
    """Состояние одной поисковой сессии.

    Принадлежит ровно одному итератору и заменяется целиком после каждого
    успешного ответа, поэтому в запрос всегда уходят токены последнего ответа.
    """

    query: str
    page_index: int = 0
    tokens: TokenBundle | None = None
    has_next_page: bool = True
    truncated: bool = False
    exhausted: bool = False
    cookies: Mapping[str, str] = field(default_factory=dict)
    result_count: int | None = None
    page_count: int | None = None
    current_page: int | None = None


@dataclass(frozen=True, slots=True)
class Page:
    """Страница результатов в порядке отображения каталогом."""

    updates: tuple[UpdateSummary, ...]
    truncated: bool
    page_number: int

    def __len__(self) -> int:
        return len(self.updates)

    def __iter__(self) -> Iterator[UpdateSummary]:
        return iter(self.updates)

    def __getitem__(self, index: int) -> UpdateSummary:
        return self.updates[index]
