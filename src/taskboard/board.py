"""
Board controller: turns user intents into one consistent store update.

Every write goes through the same steps: role check, dependency gate (for
status changes), new positions computed by `ordering` on copies, then a single
`TaskStore.replace_many` call. Core errors come back as `BoardResult` values
instead of exceptions so a UI can show them inline.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .assistant import TaskAssistant
from .errors import (
    BoardError,
    DependencyBlockedError,
    ErrorKind,
    InvalidTaskError,
    NotFoundError,
    PermissionDeniedError,
)
from .graph import BlockStatus, blocking_titles, can_transition, is_blocked
from .model import EmailDraft, MoveIntent, Task, TaskDraft, TaskStatus
from .ordering import clamp_index, column, move_across_columns, reorder_within_column
from .store import TaskStore

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """Who is acting. Supplied by the (mocked) identity provider and trusted as-is."""

    user_id: Optional[str] = None


class BoardResult(BaseModel):
    ok: bool = True
    error: Optional[ErrorKind] = None
    message: str = ""
    blocking_titles: List[str] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    task: Optional[Task] = None
    draft: Optional[EmailDraft] = None

    @classmethod
    def failure(cls, exc: BoardError) -> "BoardResult":
        return cls(
            ok=False,
            error=exc.kind,
            message=exc.message,
            blocking_titles=getattr(exc, "blocking_titles", []),
        )


class ColumnView(BaseModel):
    status: TaskStatus
    tasks: List[Task] = Field(default_factory=list)


class BoardView(BaseModel):
    project_id: str
    columns: List[ColumnView] = Field(default_factory=list)
    blocked: Dict[str, BlockStatus] = Field(default_factory=dict)

    def column_counts(self) -> Dict[TaskStatus, int]:
        return {c.status: len(c.tasks) for c in self.columns}

    def column(self, status: TaskStatus) -> ColumnView:
        for c in self.columns:
            if c.status == status:
                return c
        raise KeyError(status)


def ordered(tasks: List[Task]) -> List[Task]:
    """All tasks, column by column in display order, each column sorted by order."""
    out: List[Task] = []
    for status in TaskStatus:
        out.extend(column(tasks, status))
    return out


class BoardController:
    def __init__(
        self,
        store: TaskStore,
        session: Session,
        assistant: Optional[TaskAssistant] = None,
    ):
        self.store = store
        self.session = session
        self.assistant = assistant

    # ------------------------------------------------------------ helpers

    def _require_write(self, project_id: str) -> None:
        role = self.store.role_of(project_id, self.session.user_id)
        if role is None or not role.can_write:
            raise PermissionDeniedError(
                f"User {self.session.user_id!r} may not modify project {project_id!r}"
                f" (role: {role.value if role else 'none'})"
            )

    def _require_member(self, project_id: str) -> None:
        if self.store.role_of(project_id, self.session.user_id) is None:
            raise PermissionDeniedError(
                f"User {self.session.user_id!r} is not a member of project {project_id!r}"
            )

    def _commit(self, project_id: str, changed: List[Task], task_id: Optional[str] = None) -> BoardResult:
        self.store.replace_many(project_id, changed)
        tasks = ordered(self.store.get_tasks(project_id))
        task = next((t for t in tasks if t.id == task_id), None) if task_id else None
        return BoardResult(tasks=tasks, task=task)

    def _gate(self, task: Task, target: TaskStatus, tasks: List[Task]) -> None:
        if can_transition(task, target, tasks):
            return
        titles = blocking_titles(task, tasks)
        logger.warning("Rejected move of %r to %s; blocked by %s", task.id, target.value, titles)
        raise DependencyBlockedError(
            f"Cannot move task. Waiting for dependencies: {', '.join(titles)}",
            blocking_titles=titles,
        )

    # ------------------------------------------------------------ reads

    def view(self, project_id: str) -> BoardView:
        tasks = self.store.get_tasks(project_id)
        return BoardView(
            project_id=project_id,
            columns=[ColumnView(status=s, tasks=column(tasks, s)) for s in TaskStatus],
            blocked={t.id: is_blocked(t, tasks) for t in tasks},
        )

    # ------------------------------------------------------------ writes

    def create_task(self, project_id: str, draft: TaskDraft) -> BoardResult:
        try:
            self._require_write(project_id)
            task = self.store.create_task(project_id, draft)
        except BoardError as e:
            return BoardResult.failure(e)
        return BoardResult(tasks=ordered(self.store.get_tasks(project_id)), task=task)

    def change_status(self, project_id: str, task_id: str, status: TaskStatus) -> BoardResult:
        """Explicit status change (the card menu); the task goes to the end of its new column."""
        try:
            self._require_write(project_id)
            tasks = self.store.get_tasks(project_id)
            task = self.store.get_task(project_id, task_id)
            if task.status == status:
                return BoardResult(tasks=ordered(tasks), task=task)
            self._gate(task, status, tasks)
            changed = move_across_columns(tasks, task_id, status, len(column(tasks, status)))
            return self._commit(project_id, changed, task_id)
        except BoardError as e:
            return BoardResult.failure(e)

    def move(self, project_id: str, intent: MoveIntent) -> BoardResult:
        """Apply one drag-and-drop gesture."""
        try:
            self._require_write(project_id)
            tasks = self.store.get_tasks(project_id)
            task = self.store.get_task(project_id, intent.task_id)

            if intent.source_status == intent.dest_status and intent.source_index == intent.dest_index:
                return BoardResult(tasks=ordered(tasks), task=task)

            if task.status == intent.dest_status:
                # the stored position wins over a stale source index
                current = [t.id for t in column(tasks, task.status)].index(task.id)
                if current != intent.source_index:
                    logger.debug("Stale source index %d for %r; using %d",
                                 intent.source_index, task.id, current)
                changed = reorder_within_column(tasks, task.status, current, intent.dest_index)
            else:
                self._gate(task, intent.dest_status, tasks)
                changed = move_across_columns(
                    tasks, intent.task_id, intent.dest_status, intent.dest_index
                )
            return self._commit(project_id, changed, intent.task_id)
        except BoardError as e:
            return BoardResult.failure(e)

    def reorder(self, project_id: str, status: TaskStatus, from_index: int, to_index: int) -> BoardResult:
        try:
            self._require_write(project_id)
            tasks = self.store.get_tasks(project_id)
            col = column(tasks, status)
            if not col or from_index == to_index:
                return BoardResult(tasks=ordered(tasks))
            task_id = col[clamp_index(from_index, len(col) - 1)].id
        except BoardError as e:
            return BoardResult.failure(e)
        intent = MoveIntent(
            task_id=task_id,
            source_status=status,
            source_index=from_index,
            dest_status=status,
            dest_index=to_index,
        )
        return self.move(project_id, intent)

    def edit_task(self, project_id: str, edited: Task) -> BoardResult:
        """
        Save edits from the details view. Status, order and comments always come
        from the stored task; use `change_status` or `move` to change columns.
        """
        try:
            self._require_write(project_id)
            stored = self.store.get_task(project_id, edited.id)
            data = edited.model_dump()
            data.update(status=stored.status, order=stored.order, comments=stored.comments)
            try:
                updated = Task.model_validate(data)
            except ValidationError as e:
                raise InvalidTaskError("; ".join(err["msg"] for err in e.errors()))
            self.store.update_task(project_id, updated)
            logger.info("Edited task %r in project %r", updated.id, project_id)
        except BoardError as e:
            return BoardResult.failure(e)
        return BoardResult(tasks=ordered(self.store.get_tasks(project_id)), task=updated)

    def toggle_subtask(self, project_id: str, task_id: str, subtask_id: str) -> BoardResult:
        try:
            self._require_write(project_id)
            task = self.store.get_task(project_id, task_id)
            for st in task.subtasks:
                if st.id == subtask_id:
                    st.completed = not st.completed
                    break
            else:
                raise NotFoundError(f"Subtask {subtask_id!r} not found in task {task_id!r}")
            return self._commit(project_id, [task], task_id)
        except BoardError as e:
            return BoardResult.failure(e)

    def add_comment(self, project_id: str, task_id: str, content: str) -> BoardResult:
        try:
            self._require_write(project_id)
            self.store.add_comment(project_id, task_id, self.session.user_id, content)
            task = self.store.get_task(project_id, task_id)
        except BoardError as e:
            return BoardResult.failure(e)
        return BoardResult(tasks=ordered(self.store.get_tasks(project_id)), task=task)

    def send_chat_message(self, project_id: str, content: str) -> BoardResult:
        try:
            self._require_member(project_id)
            message = self.store.append_chat_message(project_id, self.session.user_id, content)
        except BoardError as e:
            return BoardResult.failure(e)
        return BoardResult(message=message.content)

    # ------------------------------------------------------------ AI helpers

    def suggest_subtasks(self, title: str, description: str = "") -> List[str]:
        if self.assistant is None:
            return []
        return self.assistant.suggest_subtasks(title, description)

    def draft_notification(self, project_id: str, task_id: str) -> BoardResult:
        try:
            self._require_member(project_id)
            task = self.store.get_task(project_id, task_id)
            workspace = self.store.workspace
            assignee = workspace.user_by_id(task.assignee_id)
            if assignee is None:
                raise NotFoundError(f"Task {task_id!r} has no known assignee")
            sender = workspace.user_by_id(self.session.user_id)
            if sender is None:
                raise NotFoundError(f"User {self.session.user_id!r} not found")
        except BoardError as e:
            return BoardResult.failure(e)

        assistant = self.assistant or TaskAssistant(client=None)
        draft = assistant.draft_notification_email(task, assignee, sender)
        return BoardResult(task=task, draft=draft)
