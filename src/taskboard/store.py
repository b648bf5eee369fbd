"""
In-memory task store.

`TaskStore` is the only place that reads or writes the tasks of a
`Workspace`. Reads hand out deep copies so callers can compute a new board
state freely; nothing changes until `update_task` / `replace_many` is called.
"""
from __future__ import annotations

import logging
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from .errors import NotFoundError
from .model import (
    ChatMessage,
    Comment,
    Project,
    Role,
    SubTask,
    Task,
    TaskDraft,
    TaskStatus,
    Workspace,
)
from .ordering import column, normalize

logger = logging.getLogger(__name__)


def _random_id() -> str:
    return uuid.uuid4().hex[:9]


class TaskStore:
    def __init__(self, workspace: Workspace, id_factory: Optional[Callable[[], str]] = None):
        self.workspace = workspace
        self._new_id = id_factory or _random_id

    # ------------------------------------------------------------ lookup

    def get_project(self, project_id: str) -> Project:
        project = self.workspace.project_by_id(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id!r} not found")
        return project

    def _position(self, project: Project, task_id: str) -> int:
        for i, t in enumerate(project.tasks):
            if t.id == task_id:
                return i
        raise NotFoundError(f"Task {task_id!r} not found in project {project.id!r}")

    def _fresh_id(self, taken: Sequence[str]) -> str:
        taken_set = set(taken)
        while True:
            new_id = self._new_id()
            if new_id not in taken_set:
                return new_id

    def role_of(self, project_id: str, user_id: Optional[str]) -> Optional[Role]:
        return self.get_project(project_id).role_of(user_id)

    # ------------------------------------------------------------ tasks

    def get_tasks(self, project_id: str) -> List[Task]:
        return [t.model_copy(deep=True) for t in self.get_project(project_id).tasks]

    def get_task(self, project_id: str, task_id: str) -> Task:
        project = self.get_project(project_id)
        return project.tasks[self._position(project, task_id)].model_copy(deep=True)

    def create_task(self, project_id: str, draft: TaskDraft) -> Task:
        project = self.get_project(project_id)
        # a dangling dependency id must not be handed out as the new task's id
        taken = [t.id for t in project.tasks] + list(draft.dependencies)
        task_id = self._fresh_id(taken)

        subtask_ids: List[str] = []
        subtasks = []
        for title in draft.subtasks:
            st_id = self._fresh_id(subtask_ids)
            subtask_ids.append(st_id)
            subtasks.append(SubTask(id=st_id, title=title))

        todo = normalize(column(project.tasks, TaskStatus.TODO))
        task = Task(
            id=task_id,
            title=draft.title,
            description=draft.description,
            status=TaskStatus.TODO,
            priority=draft.priority,
            assignee_id=draft.assignee_id,
            due_date=draft.due_date,
            subtasks=subtasks,
            dependencies=list(draft.dependencies),
            order=len(todo),
        )
        for t in todo:
            project.tasks[self._position(project, t.id)] = t
        project.tasks.append(task)
        logger.info("Created task %r in project %r (order %d)", task.id, project_id, task.order)
        return task.model_copy(deep=True)

    def update_task(self, project_id: str, task: Task) -> Task:
        project = self.get_project(project_id)
        pos = self._position(project, task.id)
        project.tasks[pos] = task.model_copy(deep=True)
        return task

    def replace_many(self, project_id: str, tasks: Sequence[Task]) -> List[Task]:
        """
        Replace several tasks at once. Every id is checked before anything is
        written, so either all tasks are applied or none are.
        """
        project = self.get_project(project_id)
        positions: Dict[str, int] = {}
        for t in tasks:
            positions[t.id] = self._position(project, t.id)
        for t in tasks:
            project.tasks[positions[t.id]] = t.model_copy(deep=True)
        if tasks:
            logger.info("Replaced %d task(s) in project %r", len(tasks), project_id)
        return list(tasks)

    # ------------------------------------------------------------ append-only logs

    def add_comment(self, project_id: str, task_id: str, user_id: str, content: str) -> Comment:
        project = self.get_project(project_id)
        task = project.tasks[self._position(project, task_id)]
        comment = Comment(
            id=self._fresh_id([c.id for c in task.comments]),
            user_id=user_id,
            content=content,
        )
        task.comments.append(comment)
        return comment.model_copy()

    def append_chat_message(self, project_id: str, user_id: str, content: str) -> ChatMessage:
        project = self.get_project(project_id)
        message = ChatMessage(
            id=self._fresh_id([m.id for m in project.chat_messages]),
            user_id=user_id,
            content=content,
        )
        project.chat_messages.append(message)
        return message.model_copy()
