from __future__ import annotations

from typing import Optional

from recipe_catalog.errors import CatalogError, ErrorKind

DEFAULT_DURATION_MS = 5000
# errors stay on screen longer than informational messages
ERROR_DURATION_MS = 7000

_ERROR_TITLES = {
    ErrorKind.UNAUTHENTICATED: "Sign In Required",
    ErrorKind.NOT_FOUND: "Recipe Not Found",
    ErrorKind.REMOTE: "Something Went Wrong",
}


class Notice:
    """Transient message handed to whatever notification UI is in front."""

    def __init__(
        self,
        kind: str,
        title: str,
        message: Optional[str] = None,
        duration_ms: int = DEFAULT_DURATION_MS,
    ):
        self.kind = kind
        self.title = title
        self.message = message
        self.duration_ms = duration_ms

    @classmethod
    def success(cls, title: str, message: Optional[str] = None) -> Notice:
        return cls("success", title, message)

    @classmethod
    def info(cls, title: str, message: Optional[str] = None) -> Notice:
        return cls("info", title, message)

    @classmethod
    def warning(cls, title: str, message: Optional[str] = None) -> Notice:
        return cls("warning", title, message)

    @classmethod
    def error(cls, title: str, message: Optional[str] = None) -> Notice:
        return cls("error", title, message, ERROR_DURATION_MS)

    @classmethod
    def for_error(cls, exc: CatalogError) -> Notice:
        return cls.error(_ERROR_TITLES.get(exc.kind, "Error"), exc.message or None)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "duration_ms": self.duration_ms,
        }
