from .model import (
    Comment,
    EmailDraft,
    MoveIntent,
    Priority,
    Project,
    Role,
    SubTask,
    Task,
    TaskDraft,
    TaskStatus,
    User,
    Workspace,
)
from .board import BoardController, BoardResult, BoardView, Session
from .errors import ErrorKind
from .store import TaskStore

__all__ = [
    "Comment",
    "EmailDraft",
    "MoveIntent",
    "Priority",
    "Project",
    "Role",
    "SubTask",
    "Task",
    "TaskDraft",
    "TaskStatus",
    "User",
    "Workspace",
    "BoardController",
    "BoardResult",
    "BoardView",
    "Session",
    "ErrorKind",
    "TaskStore",
]
