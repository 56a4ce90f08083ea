"""
tasktrack: a personal task-tracking engine.

Tasks are stored as one JSON document in a per-user directory and accessed
through TaskEngine (create/update/complete/delete/get/list/search/stats).
"""

from .core.engine import TaskEngine, TaskStats
from .errors import NotFoundError, StorageError, TaskTrackError, ValidationError
from .tasks.task_models import Task, TaskPriority, TaskStatus
from .tasks.task_store import JsonTaskStore

__version__ = "0.1.0"

__all__ = [
    "JsonTaskStore",
    "NotFoundError",
    "StorageError",
    "Task",
    "TaskEngine",
    "TaskPriority",
    "TaskStats",
    "TaskStatus",
    "TaskTrackError",
    "ValidationError",
]
