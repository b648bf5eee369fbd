"""
Per-column ordering of tasks.

Every function here works on copies of the tasks it is given and returns the
renumbered column(s); nothing is written back. Within a
column, `order` is kept as the dense sequence 0..n-1 after each call.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .errors import NotFoundError
from .model import Task, TaskStatus

logger = logging.getLogger(__name__)


def sort_key(task: Task) -> Tuple[int, str]:
    # equal orders should not happen; fall back to the id so sorting stays deterministic
    return task.order, task.id


def column(tasks: Sequence[Task], status: TaskStatus) -> List[Task]:
    return sorted((t for t in tasks if t.status == status), key=sort_key)


def next_order(tasks: Sequence[Task], status: TaskStatus) -> int:
    orders = [t.order for t in tasks if t.status == status]
    return max(orders) + 1 if orders else 0


def clamp_index(index: int, size: int) -> int:
    """Clamp a possibly stale UI index into [0, size]."""
    clamped = min(max(index, 0), max(size, 0))
    if clamped != index:
        logger.debug("Clamped index %d to %d (size %d)", index, clamped, size)
    return clamped


def normalize(col: Sequence[Task]) -> List[Task]:
    """Renumber an already-sorted column to 0..n-1."""
    out: List[Task] = []
    for pos, t in enumerate(col):
        out.append(t if t.order == pos else t.model_copy(update={"order": pos}))
    return out


def _copies(col: Sequence[Task]) -> List[Task]:
    return [t.model_copy(deep=True) for t in col]


def reorder_within_column(
    tasks: Sequence[Task],
    status: TaskStatus,
    from_index: int,
    to_index: int,
) -> List[Task]:
    """
    Move the task at `from_index` of the column to `to_index` and return the
    whole column renumbered. Other columns are untouched.
    """
    col = _copies(column(tasks, status))
    if not col:
        return []
    from_index = clamp_index(from_index, len(col) - 1)
    to_index = clamp_index(to_index, len(col) - 1)
    moved = col.pop(from_index)
    col.insert(to_index, moved)
    return normalize(col)


def move_across_columns(
    tasks: Sequence[Task],
    task_id: str,
    dest_status: TaskStatus,
    dest_index: int,
) -> List[Task]:
    """
    Put `task_id` into `dest_status` at `dest_index` and renumber the
    destination column. The source column is renumbered too so it does not
    keep a gap. Returns the destination column followed by the source column.
    """
    moved = next((t for t in tasks if t.id == task_id), None)
    if moved is None:
        raise NotFoundError(f"Task {task_id!r} not found")

    source_status = moved.status
    if source_status == dest_status:
        current = column(tasks, source_status).index(moved)
        return reorder_within_column(tasks, dest_status, current, dest_index)

    dest = _copies(column(tasks, dest_status))
    source = _copies(t for t in column(tasks, source_status) if t.id != task_id)

    moved = moved.model_copy(deep=True, update={"status": dest_status})
    dest.insert(clamp_index(dest_index, len(dest)), moved)
    return normalize(dest) + normalize(source)


def apply(tasks: Sequence[Task], changed: Sequence[Task]) -> List[Task]:
    """Overlay `changed` onto `tasks` by id, keeping the original list order."""
    by_id = {t.id: t for t in changed}
    return [by_id.get(t.id, t) for t in tasks]
