# tests/test_engine.py

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from tasktrack.core.engine import TaskEngine
from tasktrack.errors import NotFoundError, StorageError, ValidationError
from tasktrack.tasks.task_models import Task, TaskPriority, TaskStatus, create_task
from tasktrack.tasks.task_store import JsonTaskStore

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_then_get_round_trip(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs", tags=["docs"], priority="high")
    loaded = await engine.get_task(task.id)
    assert loaded == task


@pytest.mark.asyncio
async def test_end_to_end_scenario(engine: TaskEngine) -> None:
    a = await engine.create_task(description="Write docs")
    assert a.status is TaskStatus.PENDING
    assert a.category == "general"
    assert a.priority is TaskPriority.MEDIUM

    done = await engine.complete_task(a.id)
    assert done.status is TaskStatus.COMPLETED
    assert done.completed_at is not None

    assert await engine.list_tasks(status="completed") == [done]

    assert await engine.delete_task(a.id) is True
    assert await engine.get_task(a.id) is None
    assert await engine.delete_task(a.id) is False


@pytest.mark.asyncio
async def test_create_empty_description_is_validation_error(engine: TaskEngine) -> None:
    with pytest.raises(ValidationError) as exc:
        await engine.create_task(description="")
    assert "Description" in str(exc.value)
    assert await engine.list_tasks() == []


@pytest.mark.asyncio
async def test_create_reports_all_violations(engine: TaskEngine) -> None:
    with pytest.raises(ValidationError) as exc:
        await engine.create_task(
            description=" ",
            category="bad category",
            priority="asap",
            tags=[f"t{i}" for i in range(11)],
        )
    err = exc.value
    assert len(err.errors) == 4
    assert err.message == ", ".join(err.errors)


@pytest.mark.asyncio
async def test_update_unknown_id_is_not_found(engine: TaskEngine) -> None:
    with pytest.raises(NotFoundError):
        await engine.update_task("nonexistent", description="x")
    with pytest.raises(NotFoundError):
        await engine.complete_task("nonexistent")


@pytest.mark.asyncio
async def test_update_replaces_given_fields(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs", tags=["docs"])

    updated = await engine.update_task(task.id, category="work", tags=["docs", "v2"])

    assert updated.id == task.id
    assert updated.created_at == task.created_at
    assert updated.updated_at >= task.updated_at
    assert updated.category == "work"
    assert updated.tags == ("docs", "v2")
    assert updated.description == "Write docs"
    assert await engine.get_task(task.id) == updated


@pytest.mark.asyncio
async def test_update_validates_values(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")
    with pytest.raises(ValidationError) as exc:
        await engine.update_task(task.id, description="", priority="meh")
    assert len(exc.value.errors) == 2
    assert await engine.get_task(task.id) == task


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")
    with pytest.raises(TypeError):
        await engine.update_task(task.id, created_at=T0)


@pytest.mark.asyncio
async def test_update_on_corrupt_document_is_storage_error(engine: TaskEngine, tasks_path: Path) -> None:
    task = await engine.create_task(description="Write docs")
    tasks_path.write_text("[{", encoding="utf-8")
    with pytest.raises(StorageError):
        await engine.update_task(task.id, priority="high")
    assert tasks_path.read_text(encoding="utf-8") == "[{"


@pytest.mark.asyncio
async def test_update_validates_before_lookup(engine: TaskEngine) -> None:
    with pytest.raises(ValidationError):
        await engine.update_task("nonexistent", priority="meh")


@pytest.mark.asyncio
async def test_naive_timestamp_in_document_is_storage_error(engine: TaskEngine, tasks_path: Path) -> None:
    tasks_path.parent.mkdir(parents=True, exist_ok=True)
    tasks_path.write_text(
        json.dumps(
            [
                {
                    "id": "a",
                    "description": "Write docs",
                    "createdAt": "2026-01-01T00:00:00",
                    "updatedAt": "2026-01-01T00:00:00",
                }
            ]
        ),
        encoding="utf-8",
    )
    with pytest.raises(StorageError):
        await engine.list_tasks()


@pytest.mark.asyncio
async def test_complete_twice_keeps_completed_at(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")
    first = await engine.complete_task(task.id)
    second = await engine.complete_task(task.id)

    assert first.completed_at is not None
    assert second.completed_at == first.completed_at
    assert second.updated_at >= first.updated_at


@pytest.mark.asyncio
async def test_status_transitions_are_permissive(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")
    for status in ("cancelled", "pending", "in_progress", "completed", "pending", "cancelled"):
        task = await engine.update_task(task.id, status=status)
        assert task.status == status


@pytest.mark.asyncio
async def test_search_matches_description_and_tags(engine: TaskEngine) -> None:
    doc = await engine.create_task(description="Write documentation")
    tagged = await engine.create_task(description="Publish site", tags=["docs"])
    await engine.create_task(description="Buy milk")

    found = await engine.search_tasks("DOC")
    assert {t.id for t in found} == {doc.id, tagged.id}


@pytest.mark.asyncio
async def test_list_filters_are_conjunctive_and_sorted(store: JsonTaskStore, engine: TaskEngine) -> None:
    def mk(desc: str, minutes: int, **kw) -> Task:
        return create_task(description=desc, now=T0 + timedelta(minutes=minutes), **kw)

    old_work_high = mk("old", 0, category="work", priority="high")
    new_work_high = mk("new", 10, category="work", priority="high")
    work_low = mk("low", 5, category="work", priority="low")
    home_high = mk("home", 7, category="home", priority="high")
    done_work_high = mk("done", 3, category="work", priority="high", status="completed")
    for t in (old_work_high, new_work_high, work_low, home_high, done_work_high):
        await store.save(t)

    all_tasks = await engine.list_tasks()
    assert [t.description for t in all_tasks] == ["new", "home", "low", "done", "old"]

    work_high = await engine.list_tasks(category="work", priority="high")
    assert [t.description for t in work_high] == ["new", "done", "old"]

    # status is the primary filter, but category must match too
    pending_work = await engine.list_tasks(status="pending", category="work")
    assert [t.description for t in pending_work] == ["new", "low", "old"]

    assert await engine.list_tasks(status="completed", category="home") == []
    assert await engine.list_tasks(priority=TaskPriority.LOW) == [work_low]


@pytest.mark.asyncio
async def test_list_ties_keep_insertion_order(store: JsonTaskStore, engine: TaskEngine) -> None:
    same = [create_task(description=f"t{i}", now=T0) for i in range(4)]
    for t in same:
        await store.save(t)
    assert await engine.list_tasks() == same


@pytest.mark.asyncio
async def test_stats(engine: TaskEngine) -> None:
    empty = await engine.get_stats()
    assert empty.total == 0
    assert empty.by_status == {"pending": 0, "in_progress": 0, "completed": 0, "cancelled": 0}
    assert empty.by_priority == {"low": 0, "medium": 0, "high": 0, "urgent": 0}
    assert empty.by_category == {}

    a = await engine.create_task(description="a", category="work", priority="urgent")
    b = await engine.create_task(description="b", category="work")
    c = await engine.create_task(description="c", category="home", priority="low")
    await engine.complete_task(a.id)
    await engine.update_task(b.id, status="in_progress")
    await engine.update_task(c.id, status="cancelled")
    await engine.create_task(description="d")

    stats = await engine.get_stats()
    assert stats.total == 4
    assert stats.by_status == {"pending": 1, "in_progress": 1, "completed": 1, "cancelled": 1}
    assert sum(stats.by_status.values()) == stats.total
    assert stats.by_category == {"work": 2, "home": 1, "general": 1}
    assert stats.by_priority == {"low": 1, "medium": 2, "high": 0, "urgent": 1}
    assert stats.to_dict()["byStatus"]["completed"] == 1


@pytest.mark.asyncio
async def test_concurrent_creates_all_persist(engine: TaskEngine) -> None:
    created = await asyncio.gather(
        engine.create_task(description="first"),
        engine.create_task(description="second"),
    )
    assert len(await engine.list_tasks()) == 2

    more = await asyncio.gather(*(engine.create_task(description=f"batch {i}") for i in range(20)))
    stored = await engine.repo.find_all()
    assert len(stored) == 22
    assert {t.id for t in stored} == {t.id for t in [*created, *more]}


@pytest.mark.asyncio
async def test_concurrent_updates_to_one_task_all_apply(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")

    await asyncio.gather(
        engine.update_task(task.id, category="work"),
        engine.update_task(task.id, priority="high"),
        engine.update_task(task.id, tags=["docs"]),
    )

    stored = await engine.get_task(task.id)
    assert stored is not None
    assert stored.category == "work"
    assert stored.priority is TaskPriority.HIGH
    assert stored.tags == ("docs",)
    assert stored.description == "Write docs"


@pytest.mark.asyncio
async def test_concurrent_complete_and_update_both_apply(engine: TaskEngine) -> None:
    task = await engine.create_task(description="Write docs")

    await asyncio.gather(
        engine.complete_task(task.id),
        engine.update_task(task.id, priority="urgent"),
    )

    stored = await engine.get_task(task.id)
    assert stored is not None
    assert stored.status is TaskStatus.COMPLETED
    assert stored.completed_at is not None
    assert stored.priority is TaskPriority.URGENT
