# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from tasktrack.core.engine import TaskEngine
from tasktrack.tasks.task_store import JsonTaskStore


@pytest.fixture()
def tasks_path(tmp_path: Path) -> Path:
    """Task document path inside a per-test directory (the file itself does not exist yet)."""
    return tmp_path / "data" / "tasks.json"


@pytest.fixture()
def store(tasks_path: Path) -> JsonTaskStore:
    return JsonTaskStore(tasks_path)


@pytest.fixture()
def engine(store: JsonTaskStore) -> TaskEngine:
    """
    Engine wired to a real JSON store.

    NOTE: We keep the real file-backed store here because its persistence
    behaviour is part of what we want to test.
    """
    return TaskEngine(store)
