from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

from .io import save_workspace
from .model import (
    ChatMessage,
    Priority,
    Project,
    Role,
    SubTask,
    Task,
    TaskStatus,
    User,
    Workspace,
    utcnow,
)


DEMO_USERS = [
    User(id="u1", name="Alex Rivera", email="alex@example.com"),
    User(id="u2", name="Sarah Chen", email="sarah@example.com"),
    User(id="u3", name="Mike Johnson", email="mike@example.com"),
]


def demo_workspace() -> Workspace:
    """
    A small workspace to get started with: one project with a dependency
    chain (t1 -> t3 -> t4) and an empty second project.
    """
    now = utcnow()
    website = Project(
        id="p1",
        name="Website Redesign",
        description="Overhaul the corporate website with new branding.",
        members=["u1", "u2", "u3"],
        user_roles={"u1": Role.ADMIN, "u2": Role.MEMBER, "u3": Role.VIEWER},
        created_at=now,
        tasks=[
            Task(
                id="t1",
                title="Design Homepage Mockups",
                description="Create high-fidelity mockups for the new homepage using Figma.",
                status=TaskStatus.DONE,
                priority=Priority.HIGH,
                assignee_id="u1",
                due_date=date(2023, 11, 15),
                subtasks=[
                    SubTask(id="st1", title="Hero section", completed=True),
                    SubTask(id="st2", title="Footer", completed=True),
                ],
                order=0,
            ),
            Task(
                id="t2",
                title="Setup CI/CD Pipeline",
                description="Configure GitHub Actions for automated deployment.",
                priority=Priority.MEDIUM,
                assignee_id="u2",
                due_date=date(2023, 11, 20),
                order=0,
            ),
            Task(
                id="t3",
                title="Frontend Implementation",
                description="Implement the homepage design in React.",
                priority=Priority.HIGH,
                assignee_id="u2",
                due_date=date(2023, 11, 25),
                dependencies=["t1"],
                order=1,
            ),
            Task(
                id="t4",
                title="User Acceptance Testing",
                description="Coordinate with QA team for UAT round 1.",
                priority=Priority.HIGH,
                assignee_id="u3",
                due_date=date(2023, 12, 1),
                dependencies=["t3"],
                order=2,
            ),
        ],
        chat_messages=[
            ChatMessage(
                id="m1",
                user_id="u2",
                content="Hey team, just finished the initial wireframes!",
                timestamp=now - timedelta(hours=24),
            ),
            ChatMessage(
                id="m2",
                user_id="u1",
                content="Great work Sarah! I will review them this afternoon.",
                timestamp=now - timedelta(hours=23),
            ),
        ],
    )
    mobile = Project(
        id="p2",
        name="Mobile App Launch",
        description="Launch the iOS and Android applications.",
        members=["u1", "u2"],
        user_roles={"u1": Role.ADMIN, "u2": Role.MEMBER},
        created_at=now,
    )
    return Workspace(
        users=[u.model_copy() for u in DEMO_USERS],
        projects=[website, mobile],
    )


def init_workspace(
    repo: Path,
    filename: str = "taskboard.yaml",
    overwrite: bool = False,
    with_demo_projects: bool = True,
) -> Path:
    """
    Write a workspace snapshot to `repo/filename`.

    - If the file already exists and overwrite=False, raises FileExistsError.
    - With with_demo_projects=False only the demo users are written.
    """
    repo = repo.resolve()
    if not repo.exists():
        raise FileNotFoundError(f"Repo directory does not exist: {repo}")

    path = repo / filename
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists (use --force to replace).")

    workspace = demo_workspace()
    if not with_demo_projects:
        workspace.projects = []

    save_workspace(workspace, path)
    return path
