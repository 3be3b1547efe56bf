"""Error kinds raised by the recipe data layer.

Callers can match on the exception type or on ``exc.kind``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    REMOTE = "remote"
    NOT_FOUND = "not_found"


class CatalogError(Exception):
    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class Unauthenticated(CatalogError):
    """A write was attempted with no signed-in user."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class RemoteError(CatalogError):
    """The backing store failed, was unreachable, or denied access."""

    kind = ErrorKind.REMOTE

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class NotFound(CatalogError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "", record_id: Optional[str] = None):
        super().__init__(message or f"No record with id {record_id}")
        self.record_id = record_id
