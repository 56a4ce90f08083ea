# src/tasktrack/errors.py

"""
Errors that cross the engine boundary.

Callers only ever see these three kinds (plus programming errors like TypeError):
- ValidationError: one or more field rules violated (all of them are reported)
- NotFoundError: update/complete on an unknown id
- StorageError: the task document could not be read or written
"""

from __future__ import annotations

from pathlib import Path


class TaskTrackError(Exception):
    """Base class for user-facing tasktrack errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrackError):
    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class NotFoundError(TaskTrackError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class StorageError(TaskTrackError):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)
