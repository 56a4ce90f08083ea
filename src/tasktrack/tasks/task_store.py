# src/tasktrack/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import uuid
import weakref
from collections.abc import Callable
from pathlib import Path

import aiofiles
import aiofiles.os

from ..errors import StorageError
from .task_models import Task, TaskStatus, task_from_dict, task_to_dict

logger = logging.getLogger(__name__)

# One writer lock per (event loop, document path).
# asyncio.Lock is bound to the loop it first waits on, so locks are not shared across loops.
_WRITE_LOCKS: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]] = (
    weakref.WeakKeyDictionary()
)


def _lock_for(path: Path) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    per_loop = _WRITE_LOCKS.setdefault(loop, {})
    key = str(path)
    lock = per_loop.get(key)
    if lock is None:
        lock = asyncio.Lock()
        per_loop[key] = lock
    return lock


class JsonTaskStore:
    """
    JSON-document task store.

    The whole Store is one JSON array on disk. Every mutation is:
      lock(path) -> load document -> change list in memory -> write temp file -> rename

    Guarantees:
    - mutations on the same path never interleave (no lost updates within the process)
    - the document on disk is always either the old or the new version (atomic rename)
    - a missing file is an empty Store; unreadable/corrupt content is a StorageError

    Readers do not take the lock; the rename makes partial documents unobservable.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser().absolute()

    @property
    def path(self) -> Path:
        return self._path

    # ---- low-level helpers ----

    async def _load(self) -> list[Task]:
        try:
            async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read task document {self._path}: {e}", self._path) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Task document {self._path} is not valid JSON: {e}", self._path) from e

        if not isinstance(data, list):
            raise StorageError(f"Task document {self._path} must contain a JSON array", self._path)

        tasks: list[Task] = []
        for i, record in enumerate(data):
            try:
                tasks.append(task_from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                raise StorageError(
                    f"Task document {self._path} has a malformed record at index {i}: {e!r}",
                    self._path,
                ) from e
        return tasks

    async def _write(self, tasks: list[Task]) -> None:
        payload = json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False, indent=2)
        tmp = self._path.with_name(f".{self._path.name}.{uuid.uuid4().hex}.tmp")

        try:
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp)
            raise StorageError(f"Failed to write task document {self._path}: {e}", self._path) from e

        with contextlib.suppress(OSError):
            # Best-effort: personal data, keep the document private.
            os.chmod(self._path, 0o600)

        logger.debug("Task document written path=%s total=%d", self._path, len(tasks))

    async def _mutate(self, fn: Callable[[list[Task]], bool]) -> bool:
        """
        Run fn(tasks) under the writer lock. fn returns True if it changed the list;
        the document is rewritten only in that case.
        """
        async with _lock_for(self._path):
            tasks = await self._load()
            changed = fn(tasks)
            if changed:
                await self._write(tasks)
            return changed

    # ---- public API ----

    async def count(self) -> int:
        return len(await self._load())

    async def save(self, task: Task) -> None:
        def _append(tasks: list[Task]) -> bool:
            if any(t.id == task.id for t in tasks):
                raise StorageError(f"Task id already exists: {task.id}", self._path)
            tasks.append(task)
            return True

        await self._mutate(_append)
        logger.debug("Task saved id=%s", task.id)

    async def find_by_id(self, task_id: str) -> Task | None:
        for t in await self._load():
            if t.id == task_id:
                return t
        return None

    async def find_all(self) -> list[Task]:
        return await self._load()

    async def find_by_status(self, status: TaskStatus | str) -> list[Task]:
        return [t for t in await self._load() if t.status == status]

    async def find_by_category(self, category: str) -> list[Task]:
        return [t for t in await self._load() if t.category == category]

    async def update(self, task_id: str, snapshot: Task) -> bool:
        def _replace(tasks: list[Task]) -> bool:
            for i, t in enumerate(tasks):
                if t.id == task_id:
                    tasks[i] = snapshot
                    return True
            return False

        updated = await self._mutate(_replace)
        logger.debug("Task update id=%s updated=%s", task_id, updated)
        return updated

    async def modify(self, task_id: str, fn: Callable[[Task], Task]) -> Task | None:
        """
        Read, rebuild and replace one task inside a single critical section.

        fn receives the current snapshot and returns the new one. Returns the stored
        snapshot, or None (document untouched) if task_id does not exist.
        """
        result: Task | None = None

        def _apply(tasks: list[Task]) -> bool:
            nonlocal result
            for i, t in enumerate(tasks):
                if t.id == task_id:
                    snapshot = fn(t)
                    if snapshot.id != task_id:
                        raise ValueError(f"Task id changed during modify: {task_id} -> {snapshot.id}")
                    tasks[i] = snapshot
                    result = snapshot
                    return True
            return False

        await self._mutate(_apply)
        logger.debug("Task modify id=%s found=%s", task_id, result is not None)
        return result

    async def delete(self, task_id: str) -> bool:
        def _remove(tasks: list[Task]) -> bool:
            for i, t in enumerate(tasks):
                if t.id == task_id:
                    del tasks[i]
                    return True
            return False

        deleted = await self._mutate(_remove)
        logger.debug("Task delete id=%s deleted=%s", task_id, deleted)
        return deleted

    async def search(self, query: str) -> list[Task]:
        """Case-insensitive substring match on description, category or any tag."""
        needle = (query or "").casefold()
        out: list[Task] = []
        for t in await self._load():
            if (
                needle in t.description.casefold()
                or needle in t.category.casefold()
                or any(needle in tag.casefold() for tag in t.tags)
            ):
                out.append(t)
        return out
