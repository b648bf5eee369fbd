# tests/conftest.py

import itertools

import pytest

from taskboard.board import BoardController, Session
from taskboard.seed import demo_workspace
from taskboard.store import TaskStore


@pytest.fixture
def workspace():
    return demo_workspace()


@pytest.fixture
def store(workspace):
    counter = itertools.count(1)
    return TaskStore(workspace, id_factory=lambda: f"n{next(counter)}")


@pytest.fixture
def admin(store):
    """Controller acting as u1 (Admin of p1)."""
    return BoardController(store, Session(user_id="u1"))


@pytest.fixture
def viewer(store):
    """Controller acting as u3 (Viewer of p1)."""
    return BoardController(store, Session(user_id="u3"))
