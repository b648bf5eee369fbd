from __future__ import annotations

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    DEPENDENCY_BLOCKED = "dependency_blocked"
    INVALID_TASK = "invalid_task"


class BoardError(Exception):
    """Base class for errors the board controller turns into result values."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BoardError):
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(BoardError):
    kind = ErrorKind.PERMISSION_DENIED


class InvalidTaskError(BoardError):
    kind = ErrorKind.INVALID_TASK


class DependencyBlockedError(BoardError):
    kind = ErrorKind.DEPENDENCY_BLOCKED

    def __init__(self, message: str, blocking_titles: Optional[List[str]] = None):
        super().__init__(message)
        self.blocking_titles = list(blocking_titles or [])
