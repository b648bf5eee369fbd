from __future__ import annotations

from typing import List

import param

from taskboard.board import BoardView
from taskboard.model import Priority, TaskStatus, Workspace

STATUS_VALUES = [s.value for s in TaskStatus]
PRIORITY_VALUES = [p.value for p in Priority]


class TaskCardState(param.Parameterized):
    """
    UI-level representation of one card on the board.
    This is what a widget layer binds to directly.
    """

    id = param.String(doc="Task identifier")
    title = param.String(doc="Card title")

    status = param.ObjectSelector(default=TaskStatus.TODO.value, objects=STATUS_VALUES, doc="Column")
    priority = param.ObjectSelector(default=Priority.MEDIUM.value, objects=PRIORITY_VALUES, doc="Priority badge")
    order = param.Integer(default=0, bounds=(0, None), doc="Position in the column")

    assignee_name = param.String(default="", doc="Assignee display name, empty when unassigned")
    due_date = param.String(default="", doc="ISO due date, empty when unset")

    blocked = param.Boolean(default=False, doc="True while a dependency is not Done")
    blocked_by = param.List(item_type=str, default=[], doc="Titles of blocking tasks")

    subtasks_done = param.Integer(default=0, bounds=(0, None))
    subtasks_total = param.Integer(default=0, bounds=(0, None))


class ColumnState(param.Parameterized):
    status = param.ObjectSelector(default=TaskStatus.TODO.value, objects=STATUS_VALUES)
    cards = param.List(item_type=TaskCardState, default=[], doc="Cards sorted by order")


class BoardState(param.Parameterized):
    """
    UI-level state for one project board.
    """

    project_id = param.String(default="", doc="Project id")
    can_edit = param.Boolean(default=False, doc="Whether the viewer may create and move tasks")
    columns = param.List(item_type=ColumnState, default=[], doc="Columns in display order")


# ────────────── converters ──────────────

def view_to_state(view: BoardView, workspace: Workspace, can_edit: bool = False) -> BoardState:
    titles = {}
    for c in view.columns:
        for t in c.tasks:
            titles[t.id] = t.title

    columns: List[ColumnState] = []
    for c in view.columns:
        cards: List[TaskCardState] = []
        for t in c.tasks:
            assignee = workspace.user_by_id(t.assignee_id)
            block = view.blocked.get(t.id)
            done, total = t.subtask_progress()
            cards.append(
                TaskCardState(
                    id=t.id,
                    title=t.title,
                    status=t.status.value,
                    priority=t.priority.value,
                    order=t.order,
                    assignee_name=assignee.name if assignee else "",
                    due_date=t.due_date.isoformat() if t.due_date else "",
                    blocked=bool(block and block.blocked),
                    blocked_by=[titles[i] for i in block.blocking_task_ids] if block else [],
                    subtasks_done=done,
                    subtasks_total=total,
                )
            )
        columns.append(ColumnState(status=c.status.value, cards=cards))

    return BoardState(project_id=view.project_id, can_edit=can_edit, columns=columns)
