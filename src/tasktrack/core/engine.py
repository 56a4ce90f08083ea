# src/tasktrack/core/engine.py

"""
Task engine: the only entry point callers use.

- validates input (all violations reported at once)
- builds snapshots through tasks.task_models
- composes list filters, sorts results, computes stats
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..errors import NotFoundError, ValidationError
from ..tasks import task_models
from ..tasks.task_models import Task, TaskPriority, TaskStatus
from .ports import TaskRepo

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    by_status: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "byStatus": dict(self.by_status),
            "byCategory": dict(self.by_category),
            "byPriority": dict(self.by_priority),
        }


def _tag_values(tags: Iterable[str] | None) -> list[str] | None:
    # Materialize once so validation and construction see the same values.
    if tags is None or isinstance(tags, str):
        return tags  # type: ignore[return-value]
    return list(tags)


class TaskEngine:
    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo

    @property
    def repo(self) -> TaskRepo:
        return self._repo

    # ---- writes ----

    async def create_task(
        self,
        *,
        description: str,
        category: str | None = None,
        priority: str | TaskPriority | None = None,
        status: str | TaskStatus | None = None,
        tags: Iterable[str] | None = None,
    ) -> Task:
        tag_list = _tag_values(tags)
        errors = task_models.collect_violations(
            description=description,
            category=category,
            priority=priority,
            status=status,
            tags=tag_list,
        )
        if errors:
            logger.debug("create_task rejected: %s", errors)
            raise ValidationError(errors)

        task = task_models.create_task(
            description=description,
            category=category,
            priority=priority,
            status=status,
            tags=tag_list,
        )
        await self._repo.save(task)
        logger.info("Task created id=%s category=%s priority=%s", task.id, task.category, task.priority)
        return task

    async def update_task(self, task_id: str, **changes: Any) -> Task:
        """
        Apply a partial update. Only description/category/priority/status/tags are accepted.

        Raises ValidationError for bad values, NotFoundError for an unknown id,
        StorageError if the document cannot be read or written.

        The snapshot is rebuilt from the current stored task under the repository's
        writer lock, so concurrent updates to the same task all apply.
        """
        unknown = set(changes) - task_models.UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown task field(s): {', '.join(sorted(unknown))}")

        if "tags" in changes:
            changes["tags"] = _tag_values(changes["tags"])

        errors = task_models.collect_violations(**changes)
        if errors:
            logger.debug("update_task rejected id=%s: %s", task_id, errors)
            raise ValidationError(errors)

        updated = await self._repo.modify(task_id, lambda t: task_models.update_task(t, changes))
        if updated is None:
            raise NotFoundError(task_id)

        logger.info("Task updated id=%s fields=%s", task_id, ",".join(sorted(changes)))
        return updated

    async def complete_task(self, task_id: str) -> Task:
        return await self.update_task(task_id, status=TaskStatus.COMPLETED)

    async def delete_task(self, task_id: str) -> bool:
        deleted = await self._repo.delete(task_id)
        if deleted:
            logger.info("Task deleted id=%s", task_id)
        return deleted

    # ---- reads ----

    async def get_task(self, task_id: str) -> Task | None:
        return await self._repo.find_by_id(task_id)

    async def list_tasks(
        self,
        *,
        status: str | TaskStatus | None = None,
        category: str | None = None,
        priority: str | TaskPriority | None = None,
    ) -> list[Task]:
        """
        Filtered listing, newest first.

        Status (or, failing that, category) narrows at the repository level; every
        given criterion must then match. Equal created_at keeps stored order.
        """
        if status is not None:
            tasks = await self._repo.find_by_status(status)
        elif category is not None:
            tasks = await self._repo.find_by_category(category)
        else:
            tasks = await self._repo.find_all()

        tasks = [
            t
            for t in tasks
            if (status is None or t.status == status)
            and (category is None or t.category == category)
            and (priority is None or t.priority == priority)
        ]
        # sorted() is stable, also with reverse=True.
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    async def search_tasks(self, query: str) -> list[Task]:
        return await self._repo.search(query)

    async def get_stats(self) -> TaskStats:
        by_status = {s.value: 0 for s in TaskStatus}
        by_priority = {p.value: 0 for p in TaskPriority}
        by_category: dict[str, int] = {}
        total = 0

        for t in await self._repo.find_all():
            total += 1
            by_status[t.status.value] += 1
            by_priority[t.priority.value] += 1
            by_category[t.category] = by_category.get(t.category, 0) + 1

        return TaskStats(
            total=total,
            by_status=by_status,
            by_category=by_category,
            by_priority=by_priority,
        )
