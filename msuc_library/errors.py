"""Exception hierarchy shared by the search iterator, the parsers and the client."""

from __future__ import annotations

__all__ = [
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


class MsucError(RuntimeError):
    """Base class for every error raised by `msuc-library`."""


class TransportError(MsucError):
    """Raised when the HTTP layer fails or answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogServerError(TransportError):
    """Raised when the catalog answers 200 but renders its own error page.

    The page carries a code like ``8DDD0010``; in practice it is a 500 in disguise.
    """

    def __init__(self, code: str) -> None:
        super().__init__(
            f"received 500 error from Microsoft Update Catalog, code: {code}",
            status_code=500,
        )
        self.code = code


class ProtocolError(MsucError):
    """Raised when the postback session is out of sync with the server."""


class TokensMissingError(ProtocolError):
    """Raised when the hidden postback fields are absent from a results page."""

    def __init__(self, missing: str, *, query: str, page_index: int) -> None:
        super().__init__(
            f"postback token {missing} not found on page {page_index} for query {query!r}"
        )
        self.missing = missing
        self.query = query
        self.page_index = page_index


class TokensRejectedError(ProtocolError):
    """Raised when the catalog answers a postback with its error page."""

    def __init__(self, code: str, *, query: str, page_index: int) -> None:
        super().__init__(
            f"postback for page {page_index + 1} of query {query!r} rejected, code: {code}"
        )
        self.code = code
        self.query = query
        self.page_index = page_index


class ParseError(MsucError):
    """Raised when markup is present but cannot be mapped to a record."""


class MissingRequiredFieldError(ParseError):
    """Raised when an identifying field (id or title) is absent."""

    def __init__(self, field: str, *, context: str | None = None) -> None:
        message = f"required field {field!r} is missing"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
        self.field = field


class NotFoundError(MsucError):
    """Raised when the catalog does not know the requested update id."""

    def __init__(self, update_id: str) -> None:
        super().__init__(f"update {update_id!r} not found in Microsoft Update Catalog")
        self.update_id = update_id
