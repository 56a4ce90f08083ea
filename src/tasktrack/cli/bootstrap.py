# src/tasktrack/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the per-user data directory exists,
- wires the JSON task store into the engine.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.engine import TaskEngine
from ..tasks.task_store import JsonTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_engine(*, settings: Settings | None = None) -> TaskEngine:
    """
    Build a TaskEngine backed by the JSON document at settings.tasks_path.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = JsonTaskStore(settings.tasks_path)
    logger.debug("TaskStore ready path=%s", store.path)
    return TaskEngine(store)
