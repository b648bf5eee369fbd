from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set

from pydantic import BaseModel, Field

from .model import Task, TaskStatus

logger = logging.getLogger(__name__)


class BlockStatus(BaseModel):
    blocked: bool = False
    blocking_task_ids: List[str] = Field(default_factory=list)


def _index(tasks: Iterable[Task]) -> Dict[str, Task]:
    return {t.id: t for t in tasks}


def is_blocked(task: Task, tasks: Sequence[Task]) -> BlockStatus:
    """
    A task is blocked when at least one of its dependencies resolves to a
    task that is not Done. Dependency ids that resolve to nothing are ignored.
    """
    idx = _index(tasks)
    blocking: List[str] = []
    for dep in task.dependencies:
        dep_task = idx.get(dep)
        if dep_task is None:
            logger.debug("Task %r depends on unknown id %r; ignoring", task.id, dep)
            continue
        if dep_task.status != TaskStatus.DONE:
            blocking.append(dep)
    return BlockStatus(blocked=bool(blocking), blocking_task_ids=blocking)


def can_transition(task: Task, target: TaskStatus, tasks: Sequence[Task]) -> bool:
    if target == TaskStatus.TODO:
        return True
    return not is_blocked(task, tasks).blocked


def blocking_titles(task: Task, tasks: Sequence[Task]) -> List[str]:
    idx = _index(tasks)
    return [idx[tid].title for tid in is_blocked(task, tasks).blocking_task_ids]


def compute_ready_tasks(tasks: Sequence[Task]) -> List[Task]:
    """Todo tasks whose dependencies are all Done (i.e. can be started now)."""
    return [
        t for t in tasks
        if t.status == TaskStatus.TODO and not is_blocked(t, tasks).blocked
    ]


def build_dependency_graph(tasks: Sequence[Task]) -> Dict[str, List[str]]:
    """Map each task id to the ids of the tasks that depend on it."""
    graph: Dict[str, List[str]] = {t.id: [] for t in tasks}
    for t in tasks:
        for dep in t.dependencies:
            if dep in graph:
                graph[dep].append(t.id)
    return graph


def iter_edges(tasks: Sequence[Task]) -> Iterable[tuple[str, str]]:
    """
    Yield (from_id, to_id) for each dependency edge dep -> task.
    """
    idx = _index(tasks)
    for t in tasks:
        for dep in t.dependencies:
            if dep in idx:
                yield dep, t.id


def detect_cycles(tasks: Sequence[Task]) -> List[List[str]]:
    """
    Return every dependency cycle found by a depth-first walk, each as a
    closed path (first id repeated at the end). Tasks on a cycle can never
    leave Todo.
    """
    graph: Dict[str, List[str]] = {t.id: list(t.dependencies) for t in tasks}
    temp: Set[str] = set()
    perm: Set[str] = set()
    stack: List[str] = []
    cycles: List[List[str]] = []

    def visit(node: str):
        if node in perm:
            return
        if node in temp:
            if node in stack:
                i = stack.index(node)
                cycles.append(stack[i:] + [node])
            return
        temp.add(node)
        stack.append(node)
        for dep in graph.get(node, []):
            visit(dep)
        stack.pop()
        temp.remove(node)
        perm.add(node)

    for n in graph:
        if n not in perm:
            visit(n)
    return cycles
