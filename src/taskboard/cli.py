from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from .assistant import TaskAssistant
from .board import BoardController, BoardResult, BoardView, Session
from .graph import compute_ready_tasks, detect_cycles
from .io import load_workspace, save_workspace
from .model import MoveIntent, Priority, Project, TaskDraft, TaskStatus, Workspace
from .ordering import column, sort_key
from .seed import init_workspace
from .store import TaskStore


DEFAULT_FILENAME = "taskboard.yaml"

STATUS_ALIASES = {
    "todo": TaskStatus.TODO,
    "in-progress": TaskStatus.IN_PROGRESS,
    "review": TaskStatus.REVIEW,
    "done": TaskStatus.DONE,
}


def _find_repo_root(start: Path, filename: str = DEFAULT_FILENAME) -> Path:
    """
    Very simple heuristic: walk up until we find the snapshot file, pyproject.toml, or .git.
    """
    p = start.resolve()
    for parent in [p] + list(p.parents):
        if (parent / filename).exists() or (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return start


def _parse_status(value: str) -> TaskStatus:
    key = value.strip().lower().replace(" ", "-").replace("_", "-")
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    for s in TaskStatus:
        if s.value.lower() == value.strip().lower():
            return s
    raise argparse.ArgumentTypeError(
        f"invalid status {value!r} (choose from {', '.join(STATUS_ALIASES)})"
    )


def _parse_priority(value: str) -> Priority:
    try:
        return Priority(value.strip().capitalize())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid priority {value!r} (low, medium, high)")


def _add_common_args(parser: argparse.ArgumentParser, with_session: bool = True) -> None:
    parser.add_argument("--repo", type=str, default=".", help="Path to repo root (default: .)")
    parser.add_argument("--filename", type=str, default=DEFAULT_FILENAME, help=f"Snapshot filename (default: {DEFAULT_FILENAME})")
    parser.add_argument("--project", type=str, default=None, help="Project id (default: first project)")
    if with_session:
        parser.add_argument("--user", type=str, default=None, help="Acting user id (default: first user)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(args: argparse.Namespace) -> Tuple[Path, Workspace]:
    repo = _find_repo_root(Path(args.repo), args.filename)
    path = repo / args.filename
    if not path.exists():
        raise FileNotFoundError(f"{path} not found (run taskboard-init first)")
    return path, load_workspace(path)


def _pick_project(workspace: Workspace, project_id: Optional[str]) -> Project:
    if project_id is None:
        if not workspace.projects:
            raise LookupError("workspace has no projects")
        return workspace.projects[0]
    project = workspace.project_by_id(project_id)
    if project is None:
        raise LookupError(f"project {project_id!r} not found")
    return project


def _controller(workspace: Workspace, args: argparse.Namespace, assistant: Optional[TaskAssistant] = None) -> BoardController:
    user_id = getattr(args, "user", None)
    if user_id is None and workspace.users:
        user_id = workspace.users[0].id
    return BoardController(TaskStore(workspace), Session(user_id=user_id), assistant=assistant)


def _report_failure(result: BoardResult) -> int:
    print(f"ERROR: {result.message}", file=sys.stderr)
    for title in result.blocking_titles:
        print(f" - blocked by: {title}", file=sys.stderr)
    return 1


def _print_board(view: BoardView, workspace: Workspace, project: Project) -> None:
    print(f"{project.name} ({project.id})\n")
    titles = {t.id: t.title for t in project.tasks}
    for col in view.columns:
        print(f"== {col.status.value} ({len(col.tasks)})")
        if not col.tasks:
            print("   (empty)")
        for t in col.tasks:
            assignee = workspace.user_by_id(t.assignee_id)
            who = assignee.name if assignee else "unassigned"
            line = f"  {t.order}. [{t.priority.value}] {t.id}: {t.title}  ({who})"
            done, total = t.subtask_progress()
            if total:
                line += f"  {done}/{total} subtasks"
            print(line)
            block = view.blocked.get(t.id)
            if block and block.blocked:
                names = ", ".join(titles.get(i, i) for i in block.blocking_task_ids)
                print(f"     blocked by: {names}")
    print()


# ---------------------- init ----------------------


def main_init(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Write a starter taskboard snapshot.")
    parser.add_argument("--repo", type=str, default=".", help="Path to repo root (default: .)")
    parser.add_argument("--filename", type=str, default=DEFAULT_FILENAME, help=f"Snapshot filename (default: {DEFAULT_FILENAME})")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing snapshot.")
    parser.add_argument("--empty", action="store_true", help="Only write the demo users, no projects.")
    args = parser.parse_args(argv)

    repo = Path(args.repo)
    repo.mkdir(parents=True, exist_ok=True)
    try:
        path = init_workspace(
            repo,
            filename=args.filename,
            overwrite=args.force,
            with_demo_projects=not args.empty,
        )
    except (FileExistsError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Initialized taskboard at {path}")
    return 0


# ---------------------- show ----------------------


def main_show(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Print a project's board, column by column.")
    _add_common_args(parser, with_session=False)
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        _, workspace = _load(args)
        project = _pick_project(workspace, args.project)
    except (FileNotFoundError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    view = _controller(workspace, args).view(project.id)
    _print_board(view, workspace, project)
    return 0


# ---------------------- move ----------------------


def main_move(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Move a task to another column and/or position (drag and drop)."
    )
    _add_common_args(parser)
    parser.add_argument("task", help="Task id to move.")
    parser.add_argument("--to", type=_parse_status, default=None, help="Destination status (default: current status).")
    parser.add_argument("--index", type=int, default=None, help="Destination position (default: end of column).")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        path, workspace = _load(args)
        project = _pick_project(workspace, args.project)
    except (FileNotFoundError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    task = project.task_by_id(args.task)
    if task is None:
        print(f"ERROR: task {args.task!r} not found in project {project.id!r}", file=sys.stderr)
        return 1

    source_col = column(project.tasks, task.status)
    dest_status = args.to or task.status
    if args.index is not None:
        dest_index = args.index
    elif dest_status == task.status:
        dest_index = len(source_col) - 1
    else:
        dest_index = len(column(project.tasks, dest_status))

    intent = MoveIntent(
        task_id=task.id,
        source_status=task.status,
        source_index=[t.id for t in source_col].index(task.id),
        dest_status=dest_status,
        dest_index=dest_index,
    )
    controller = _controller(workspace, args)
    result = controller.move(project.id, intent)
    if not result.ok:
        return _report_failure(result)

    save_workspace(workspace, path)
    moved = result.task
    print(f"Moved {task.id!r} to {moved.status.value} at position {moved.order}.")
    return 0


# ---------------------- create ----------------------


def main_create(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create a task in the To Do column.")
    _add_common_args(parser)
    parser.add_argument("title", help="Task title.")
    parser.add_argument("--description", type=str, default="", help="Task description.")
    parser.add_argument("--priority", type=_parse_priority, default=Priority.MEDIUM, help="low, medium or high (default: medium).")
    parser.add_argument("--assignee", type=str, default=None, help="Assignee user id.")
    parser.add_argument("--due", type=date.fromisoformat, default=None, help="Due date (YYYY-MM-DD).")
    parser.add_argument("--depends-on", action="append", default=[], help="Dependency task id (repeatable).")
    parser.add_argument("--subtask", action="append", default=[], help="Subtask title (repeatable).")
    parser.add_argument(
        "--suggest-subtasks",
        action="store_true",
        help="Ask the AI assistant for subtasks when none are given (needs OPENAI_API_KEY).",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        path, workspace = _load(args)
        project = _pick_project(workspace, args.project)
    except (FileNotFoundError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    assistant = TaskAssistant() if args.suggest_subtasks else None
    controller = _controller(workspace, args, assistant=assistant)

    subtasks = list(args.subtask)
    if not subtasks and args.suggest_subtasks:
        subtasks = controller.suggest_subtasks(args.title, args.description)

    try:
        draft = TaskDraft(
            title=args.title,
            description=args.description,
            priority=args.priority,
            assignee_id=args.assignee,
            due_date=args.due,
            subtasks=subtasks,
            dependencies=args.depends_on,
        )
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    result = controller.create_task(project.id, draft)
    if not result.ok:
        return _report_failure(result)

    save_workspace(workspace, path)
    print(f"Created {result.task.id}: {result.task.title} (order {result.task.order})")
    return 0


# ---------------------- next ----------------------


def main_next(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="List To Do tasks whose dependencies are all Done."
    )
    _add_common_args(parser, with_session=False)
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        _, workspace = _load(args)
        project = _pick_project(workspace, args.project)
    except (FileNotFoundError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    ready = sorted(compute_ready_tasks(project.tasks), key=sort_key)
    if not ready:
        print(f"No ready tasks found in project {project.id!r}")
        return 0

    print(f"Ready tasks in project {project.id!r}:\n")
    for t in ready:
        deps = ", ".join(t.dependencies) if t.dependencies else "none"
        print(f"- {t.id}: {t.title}  (priority: {t.priority.value}, depends on: {deps})")
    return 0


# ---------------------- validate ----------------------


def main_validate(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate a taskboard snapshot.")
    parser.add_argument("--repo", type=str, default=".", help="Path to repo root (default: .)")
    parser.add_argument("--filename", type=str, default=DEFAULT_FILENAME, help=f"Snapshot filename (default: {DEFAULT_FILENAME})")
    args = parser.parse_args(argv)

    repo = _find_repo_root(Path(args.repo), args.filename)
    path = repo / args.filename
    if not path.exists():
        print(f"ERROR: {path} not found", file=sys.stderr)
        return 1

    try:
        workspace = load_workspace(path)
    except ValueError as e:
        # pydantic rejects duplicate task ids and self dependencies at load time
        print("Validation failed:", file=sys.stderr)
        print(f" - {e}", file=sys.stderr)
        return 1

    errors: List[str] = []
    warnings: List[str] = []

    project_ids = [p.id for p in workspace.projects]
    for pid in sorted({p for p in project_ids if project_ids.count(p) > 1}):
        errors.append(f"Duplicate project id {pid!r}.")

    for project in workspace.projects:
        idx = project.task_index()
        for t in project.tasks:
            for dep in t.dependencies:
                if dep not in idx:
                    warnings.append(f"[{project.id}] task {t.id!r} depends on unknown id {dep!r} (ignored)")

        for status in TaskStatus:
            orders = [t.order for t in column(project.tasks, status)]
            if orders != list(range(len(orders))):
                errors.append(
                    f"[{project.id}] column {status.value!r} order is not 0..{len(orders) - 1}: {orders}"
                )

        for cycle in detect_cycles(project.tasks):
            warnings.append(
                f"[{project.id}] dependency cycle {' -> '.join(cycle)}; these tasks can never leave To Do"
            )

    for w in warnings:
        print(f"WARNING: {w}")

    if errors:
        print("Validation failed:", file=sys.stderr)
        for e in errors:
            print(" -", e, file=sys.stderr)
        return 1

    print(f"{args.filename} is valid.")
    return 0


# ---------------------- draft-email ----------------------


def main_draft_email(argv: Optional[List[str]] = None) -> int:
    """
    Print a notification email for a task's assignee.

    Uses the AI assistant when OPENAI_API_KEY is set, otherwise (or on any
    failure) the fixed template.
    """
    parser = argparse.ArgumentParser(description="Draft a notification email to a task's assignee.")
    _add_common_args(parser)
    parser.add_argument("task", help="Task id.")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        _, workspace = _load(args)
        project = _pick_project(workspace, args.project)
    except (FileNotFoundError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    controller = _controller(workspace, args, assistant=TaskAssistant())
    result = controller.draft_notification(project.id, args.task)
    if not result.ok:
        return _report_failure(result)

    print(f"Subject: {result.draft.subject}\n")
    print(result.draft.body)
    return 0
