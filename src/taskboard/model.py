from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    """Board columns, in display order."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Role(str, Enum):
    ADMIN = "Admin"
    MEMBER = "Member"
    VIEWER = "Viewer"

    @property
    def can_write(self) -> bool:
        return self in (Role.ADMIN, Role.MEMBER)


class User(BaseModel):
    id: str
    name: str
    email: str = ""
    avatar_url: Optional[str] = None


class SubTask(BaseModel):
    id: str
    title: str
    completed: bool = False


class Comment(BaseModel):
    id: str
    user_id: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class ChatMessage(BaseModel):
    id: str
    user_id: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None

    subtasks: List[SubTask] = Field(default_factory=list)
    # ids of tasks in the same project that must be Done first
    dependencies: List[str] = Field(default_factory=list)
    order: int = Field(default=0, ge=0)
    comments: List[Comment] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def nonempty_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Task id must not be empty")
        return v

    @model_validator(mode="after")
    def no_self_dependency(self) -> "Task":
        if self.id in self.dependencies:
            raise ValueError(f"Task {self.id!r} cannot depend on itself")
        return self

    def subtask_progress(self) -> Tuple[int, int]:
        done = sum(1 for st in self.subtasks if st.completed)
        return done, len(self.subtasks)


class TaskDraft(BaseModel):
    """
    Caller-supplied fields for a new task. Identity, status and order are
    assigned by the store.
    """

    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    subtasks: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Task title must not be empty")
        return v


class Project(BaseModel):
    id: str
    name: str
    description: str = ""
    members: List[str] = Field(default_factory=list)
    user_roles: Dict[str, Role] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    tasks: List[Task] = Field(default_factory=list)
    chat_messages: List[ChatMessage] = Field(default_factory=list)

    @field_validator("tasks")
    @classmethod
    def unique_ids(cls, tasks: List[Task]) -> List[Task]:
        ids = set()
        for t in tasks:
            if t.id in ids:
                raise ValueError(f"Duplicate task id: {t.id}")
            ids.add(t.id)
        return tasks

    def task_by_id(self, task_id: str) -> Optional[Task]:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def task_index(self) -> Dict[str, Task]:
        return {t.id: t for t in self.tasks}

    def role_of(self, user_id: Optional[str]) -> Optional[Role]:
        if user_id is None:
            return None
        return self.user_roles.get(user_id)


class Workspace(BaseModel):
    version: float = 0.1
    users: List[User] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)

    def project_by_id(self, project_id: str) -> Optional[Project]:
        for p in self.projects:
            if p.id == project_id:
                return p
        return None

    def user_by_id(self, user_id: Optional[str]) -> Optional[User]:
        for u in self.users:
            if u.id == user_id:
                return u
        return None


class MoveIntent(BaseModel):
    """One discrete drag-and-drop gesture: take a card from one slot, drop it in another."""

    task_id: str
    source_status: TaskStatus
    source_index: int
    dest_status: TaskStatus
    dest_index: int


class EmailDraft(BaseModel):
    subject: str
    body: str
