# tests/test_store.py

import pytest

from taskboard.errors import ErrorKind, NotFoundError
from taskboard.model import Priority, Project, Task, TaskDraft, TaskStatus, Workspace
from taskboard.store import TaskStore


def test_create_task_appends_to_todo(store):
    # p1's To Do column holds t2, t3, t4 with orders 0..2
    task = store.create_task("p1", TaskDraft(title="Write release notes", priority=Priority.LOW))

    assert task.id == "n1"
    assert task.status == TaskStatus.TODO
    assert task.order == 3
    assert task.priority == Priority.LOW
    assert store.get_task("p1", "n1").title == "Write release notes"


def test_create_task_in_empty_project_starts_at_zero(store):
    task = store.create_task("p2", TaskDraft(title="App store listing", subtasks=["Screenshots", "Copy"]))
    assert task.order == 0
    assert [st.title for st in task.subtasks] == ["Screenshots", "Copy"]
    assert len({st.id for st in task.subtasks}) == 2


def test_create_task_skips_taken_ids(workspace):
    ids = iter(["t1", "t2", "fresh"])
    store = TaskStore(workspace, id_factory=lambda: next(ids))
    assert store.create_task("p1", TaskDraft(title="New")).id == "fresh"


def test_create_task_unknown_project(store):
    with pytest.raises(NotFoundError) as exc:
        store.create_task("nope", TaskDraft(title="Lost"))
    assert exc.value.kind == ErrorKind.NOT_FOUND


def test_reads_are_copies(store):
    tasks = store.get_tasks("p1")
    tasks[0].title = "changed locally"
    assert store.get_task("p1", tasks[0].id).title != "changed locally"


def test_update_task(store):
    task = store.get_task("p1", "t2")
    task.description = "Use GitHub Actions and a staging environment."
    store.update_task("p1", task)
    assert store.get_task("p1", "t2").description.startswith("Use GitHub Actions")


def test_update_missing_task(store):
    task = store.get_task("p1", "t2").model_copy(update={"id": "ghost"})
    with pytest.raises(NotFoundError):
        store.update_task("p1", task)


def test_replace_many_is_all_or_nothing(store):
    t2 = store.get_task("p1", "t2").model_copy(update={"order": 5})
    ghost = store.get_task("p1", "t3").model_copy(update={"id": "ghost"})

    with pytest.raises(NotFoundError):
        store.replace_many("p1", [t2, ghost])
    assert store.get_task("p1", "t2").order == 0

    store.replace_many("p1", [t2])
    assert store.get_task("p1", "t2").order == 5


def test_append_only_logs(store):
    before = len(store.get_project("p1").chat_messages)
    msg = store.append_chat_message("p1", "u2", "Standup in 5")
    assert msg.user_id == "u2"
    assert store.get_project("p1").chat_messages[-1].content == "Standup in 5"
    assert len(store.get_project("p1").chat_messages) == before + 1

    comment = store.add_comment("p1", "t3", "u1", "Waiting on mockups")
    assert store.get_task("p1", "t3").comments == [comment]


def test_role_of(store):
    assert store.role_of("p1", "u3").value == "Viewer"
    assert store.role_of("p2", "u3") is None


def test_create_task_renumbers_a_loose_todo_column():
    # hand-built board: duplicate and gapped orders in To Do
    project = Project(
        id="p",
        name="Loose",
        tasks=[
            Task(id="a", title="A"),
            Task(id="b", title="B"),
            Task(id="c", title="C", order=7),
            Task(id="d", title="D", status=TaskStatus.DONE, order=4),
        ],
    )
    store = TaskStore(Workspace(projects=[project]), id_factory=lambda: "new")

    task = store.create_task("p", TaskDraft(title="E"))

    todo = sorted((t for t in store.get_tasks("p") if t.status == TaskStatus.TODO), key=lambda t: t.order)
    assert [(t.id, t.order) for t in todo] == [("a", 0), ("b", 1), ("c", 2), ("new", 3)]
    assert task.order == 3
    assert store.get_task("p", "d").order == 4


def test_create_task_never_reuses_a_dangling_dependency_id(workspace):
    ids = iter(["x1", "x2"])
    store = TaskStore(workspace, id_factory=lambda: next(ids))

    task = store.create_task("p1", TaskDraft(title="Later", dependencies=["x1"]))

    assert task.id == "x2"
    assert task.dependencies == ["x1"]
