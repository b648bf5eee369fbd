# tests/test_board.py

import random

from taskboard.board import BoardController, Session
from taskboard.errors import ErrorKind
from taskboard.model import MoveIntent, TaskDraft, TaskStatus
from taskboard.ordering import column

TODO = TaskStatus.TODO
DOING = TaskStatus.IN_PROGRESS


def _intent(task_id, src, src_idx, dst, dst_idx):
    return MoveIntent(
        task_id=task_id,
        source_status=src,
        source_index=src_idx,
        dest_status=dst,
        dest_index=dst_idx,
    )


def _assert_dense(tasks):
    for status in TaskStatus:
        orders = sorted(t.order for t in tasks if t.status == status)
        assert orders == list(range(len(orders))), f"{status.value}: {orders}"


def test_move_unblocked_task_succeeds(admin, store):
    # t3 depends on t1, which is Done
    result = admin.move("p1", _intent("t3", TODO, 1, DOING, 0))

    assert result.ok, result.message
    assert result.task.status == DOING
    assert store.get_task("p1", "t3").status == DOING
    _assert_dense(result.tasks)


def test_move_blocked_task_is_rejected(admin, store):
    t1 = store.get_task("p1", "t1")
    t1.status = TODO
    store.update_task("p1", t1)
    before = store.get_tasks("p1")

    result = admin.move("p1", _intent("t3", TODO, 1, DOING, 0))

    assert not result.ok
    assert result.error == ErrorKind.DEPENDENCY_BLOCKED
    assert result.blocking_titles == ["Design Homepage Mockups"]
    assert store.get_task("p1", "t3").status == TODO
    assert store.get_tasks("p1") == before


def test_blocked_task_can_always_return_to_todo(admin, store):
    t4 = store.get_task("p1", "t4")
    t4.status = TaskStatus.REVIEW
    store.update_task("p1", t4)

    result = admin.change_status("p1", "t4", TODO)
    assert result.ok
    assert result.task.status == TODO
    # appended at the end of To Do
    assert result.task.order == len(column(result.tasks, TODO)) - 1


def test_change_status_gated_like_move(admin):
    result = admin.change_status("p1", "t4", TaskStatus.DONE)
    assert not result.ok
    assert result.blocking_titles == ["Frontend Implementation"]

    assert admin.change_status("p1", "t3", TaskStatus.DONE).ok
    assert admin.change_status("p1", "t4", TaskStatus.DONE).ok


def test_reorder_within_column(admin):
    result = admin.move("p1", _intent("t2", TODO, 0, TODO, 2))
    assert result.ok
    todo = column(result.tasks, TODO)
    assert [(t.id, t.order) for t in todo] == [("t3", 0), ("t4", 1), ("t2", 2)]


def test_reorder_wrapper_and_noop(admin, store):
    before = store.get_tasks("p1")
    assert admin.reorder("p1", TODO, 1, 1).ok
    assert store.get_tasks("p1") == before

    result = admin.reorder("p1", TODO, 2, 0)
    assert [t.id for t in column(result.tasks, TODO)] == ["t4", "t2", "t3"]


def test_same_slot_move_is_noop(admin, store):
    before = store.get_tasks("p1")
    result = admin.move("p1", _intent("t3", TODO, 1, TODO, 1))
    assert result.ok
    assert store.get_tasks("p1") == before


def test_viewer_cannot_write(viewer, store):
    before = store.get_tasks("p1")

    for result in (
        viewer.create_task("p1", TaskDraft(title="Sneaky")),
        viewer.move("p1", _intent("t2", TODO, 0, DOING, 0)),
        viewer.change_status("p1", "t2", DOING),
        viewer.reorder("p1", TODO, 0, 2),
    ):
        assert not result.ok
        assert result.error == ErrorKind.PERMISSION_DENIED

    assert store.get_tasks("p1") == before


def test_non_member_cannot_write(store):
    stranger = BoardController(store, Session(user_id="u3"))
    result = stranger.create_task("p2", TaskDraft(title="Not mine"))
    assert result.error == ErrorKind.PERMISSION_DENIED


def test_missing_project_and_task(admin):
    result = admin.move("nope", _intent("t2", TODO, 0, DOING, 0))
    assert result.error == ErrorKind.NOT_FOUND

    result = admin.move("p1", _intent("ghost", TODO, 0, DOING, 0))
    assert result.error == ErrorKind.NOT_FOUND

    result = admin.change_status("p1", "ghost", DOING)
    assert result.error == ErrorKind.NOT_FOUND


def test_create_task_order(admin):
    result = admin.create_task("p1", TaskDraft(title="Write copy"))
    assert result.ok
    assert result.task.order == 3
    assert result.task.status == TODO


def test_view_reports_columns_and_blocks(viewer):
    view = viewer.view("p1")
    assert [c.status for c in view.columns] == list(TaskStatus)
    assert [t.id for t in view.column(TODO).tasks] == ["t2", "t3", "t4"]
    assert view.column_counts()[TaskStatus.DONE] == 1
    assert view.blocked["t4"].blocking_task_ids == ["t3"]
    assert not view.blocked["t3"].blocked


def test_edit_task_keeps_status_and_order(admin, store):
    task = store.get_task("p1", "t2")
    task.title = "Setup CI/CD"
    task.status = TaskStatus.DONE
    task.order = 9

    result = admin.edit_task("p1", task)
    assert result.ok
    stored = store.get_task("p1", "t2")
    assert stored.title == "Setup CI/CD"
    assert stored.status == TODO
    assert stored.order == 0


def test_edit_task_rejects_self_dependency(admin, store):
    task = store.get_task("p1", "t2")
    task.dependencies = ["t2"]

    result = admin.edit_task("p1", task)

    assert not result.ok
    assert result.error == ErrorKind.INVALID_TASK
    assert "cannot depend on itself" in result.message
    assert store.get_task("p1", "t2").dependencies == []


def test_edit_task_from_stale_copy_keeps_new_comments(admin, store):
    stale = store.get_task("p1", "t3")
    admin.add_comment("p1", "t3", "Blocked on hosting")

    stale.title = "Design homepage v2"
    result = admin.edit_task("p1", stale)

    assert result.ok
    stored = store.get_task("p1", "t3")
    assert stored.title == "Design homepage v2"
    assert [c.content for c in stored.comments] == ["Blocked on hosting"]


def test_create_task_through_controller_keeps_todo_dense(admin, store):
    project = store.get_project("p1")
    for t in project.tasks:
        if t.status == TODO:
            t.order = 0

    result = admin.create_task("p1", TaskDraft(title="Launch checklist"))

    assert result.ok
    assert [t.order for t in column(store.get_tasks("p1"), TODO)] == [0, 1, 2, 3]


def test_toggle_subtask_and_comment(admin, store):
    result = admin.toggle_subtask("p1", "t1", "st1")
    assert result.ok
    assert result.task.subtask_progress() == (1, 2)

    assert admin.toggle_subtask("p1", "t1", "missing").error == ErrorKind.NOT_FOUND

    result = admin.add_comment("p1", "t3", "Starting tomorrow")
    assert result.task.comments[-1].user_id == "u1"


def test_chat_open_to_all_members(viewer, store):
    assert viewer.send_chat_message("p1", "Looks good").ok
    assert store.get_project("p1").chat_messages[-1].user_id == "u3"

    assert viewer.send_chat_message("p2", "Hi").error == ErrorKind.PERMISSION_DENIED


def test_random_operations_keep_columns_dense(admin, store):
    rng = random.Random(7)
    statuses = list(TaskStatus)
    for i in range(5):
        admin.create_task("p1", TaskDraft(title=f"Extra {i}"))

    for _ in range(200):
        tasks = store.get_tasks("p1")
        task = rng.choice(tasks)
        src_col = column(tasks, task.status)
        src_idx = [t.id for t in src_col].index(task.id)
        dst = rng.choice(statuses)
        dst_idx = rng.randint(-1, len(column(tasks, dst)) + 1)
        admin.move("p1", _intent(task.id, task.status, src_idx, dst, dst_idx))
        _assert_dense(store.get_tasks("p1"))
