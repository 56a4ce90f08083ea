# src/tasktrack/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the engine.

The engine depends on a Protocol instead of the concrete JSON store.
This keeps the storage backend swappable and makes testing easier.
"""

from collections.abc import Callable
from typing import Protocol

from ..tasks.task_models import Task, TaskStatus


class TaskRepo(Protocol):
    # Writes (serialized by the implementation)
    async def save(self, task: Task) -> None: ...
    async def update(self, task_id: str, snapshot: Task) -> bool: ...
    async def modify(self, task_id: str, fn: Callable[[Task], Task]) -> Task | None: ...
    async def delete(self, task_id: str) -> bool: ...

    # Reads
    async def find_by_id(self, task_id: str) -> Task | None: ...
    async def find_all(self) -> list[Task]: ...
    async def find_by_status(self, status: TaskStatus | str) -> list[Task]: ...
    async def find_by_category(self, category: str) -> list[Task]: ...
    async def search(self, query: str) -> list[Task]: ...
    async def count(self) -> int: ...
