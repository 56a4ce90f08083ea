# src/tasktrack/tasks/task_models.py

"""
Task snapshot + pure helpers (no I/O).

A Task is never changed in place: create_task() builds the first snapshot and
update_task() returns a new one with the same id/created_at. Validation is a
separate step (collect_violations) that callers run before building.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

DEFAULT_CATEGORY = "general"

MAX_DESCRIPTION_LEN = 500
MAX_TAGS = 10

_CATEGORY_RE = re.compile(r"[A-Za-z0-9_-]{1,50}")
_TAG_RE = re.compile(r"[A-Za-z0-9_-]{1,30}")

UPDATABLE_FIELDS = frozenset({"description", "category", "priority", "status", "tags"})


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Transitions are not restricted: any status can be set from any other one.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


_STATUS_VALUES = frozenset(s.value for s in TaskStatus)
_PRIORITY_VALUES = frozenset(p.value for p in TaskPriority)


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    description: str
    category: str
    priority: TaskPriority
    status: TaskStatus
    tags: tuple[str, ...]

    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    return uuid.uuid4().hex


# ---- validation predicates ----


def validate_description(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return 1 <= len(value.strip()) <= MAX_DESCRIPTION_LEN


def validate_category(value: Any) -> bool:
    return isinstance(value, str) and _CATEGORY_RE.fullmatch(value) is not None


def _tag_list(value: Any) -> list[Any] | None:
    # A bare string is not a tag sequence.
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return None
    return list(value)


def validate_tags(value: Any) -> bool:
    tags = _tag_list(value)
    if tags is None or len(tags) > MAX_TAGS:
        return False
    return all(isinstance(t, str) and _TAG_RE.fullmatch(t) is not None for t in tags)


def validate_priority(value: Any) -> bool:
    return isinstance(value, str) and value in _PRIORITY_VALUES


def validate_status(value: Any) -> bool:
    return isinstance(value, str) and value in _STATUS_VALUES


_UNSET: Any = object()


def collect_violations(
    *,
    description: Any = _UNSET,
    category: Any = _UNSET,
    priority: Any = _UNSET,
    status: Any = _UNSET,
    tags: Any = _UNSET,
) -> list[str]:
    """
    Check every provided field and return all violated rules (empty list => valid).

    Fields left out are not checked, so the same function serves create and update.
    None means "use the default" and is accepted for everything except description.
    """
    errors: list[str] = []

    if description is not _UNSET and not validate_description(description):
        errors.append(f"Description must be between 1 and {MAX_DESCRIPTION_LEN} characters")

    if category not in (_UNSET, None) and not validate_category(category):
        errors.append(
            "Category must be 1-50 characters of letters, digits, dashes or underscores"
        )

    if priority not in (_UNSET, None) and not validate_priority(priority):
        errors.append(f"Priority must be one of: {', '.join(p.value for p in TaskPriority)}")

    if status not in (_UNSET, None) and not validate_status(status):
        errors.append(f"Status must be one of: {', '.join(s.value for s in TaskStatus)}")

    if tags not in (_UNSET, None) and not validate_tags(tags):
        tag_list = _tag_list(tags)
        if tag_list is None:
            errors.append("Tags must be a list of strings")
        else:
            if len(tag_list) > MAX_TAGS:
                errors.append(f"Maximum {MAX_TAGS} tags allowed")
            if not all(isinstance(t, str) and _TAG_RE.fullmatch(t) for t in tag_list):
                errors.append(
                    "Tags must be 1-30 characters of letters, digits, dashes or underscores"
                )

    return errors


# ---- construction ----


def create_task(
    *,
    description: str,
    category: str | None = None,
    priority: str | TaskPriority | None = None,
    status: str | TaskStatus | None = None,
    tags: Iterable[str] | None = None,
    now: datetime | None = None,
) -> Task:
    """Build a fresh snapshot with defaults filled in. Does not validate."""
    if now is None:
        now = utc_now()

    task_status = TaskStatus(status) if status is not None else TaskStatus.PENDING

    return Task(
        id=new_task_id(),
        description=description.strip(),
        category=category if category is not None else DEFAULT_CATEGORY,
        priority=TaskPriority(priority) if priority is not None else TaskPriority.MEDIUM,
        status=task_status,
        tags=tuple(tags or ()),
        created_at=now,
        updated_at=now,
        completed_at=now if task_status is TaskStatus.COMPLETED else None,
    )


def update_task(existing: Task, changes: Mapping[str, Any], *, now: datetime | None = None) -> Task:
    """
    Return a new snapshot with only the given fields replaced.

    completed_at is set only when the status moves into COMPLETED from something
    else; otherwise the previous value is carried over (never cleared).
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise TypeError(f"Unknown task field(s): {', '.join(sorted(unknown))}")

    if now is None:
        now = utc_now()

    fields: dict[str, Any] = {"updated_at": now}

    if changes.get("description") is not None:
        fields["description"] = str(changes["description"]).strip()
    if changes.get("category") is not None:
        fields["category"] = changes["category"]
    if changes.get("priority") is not None:
        fields["priority"] = TaskPriority(changes["priority"])
    if changes.get("tags") is not None:
        fields["tags"] = tuple(changes["tags"])
    if changes.get("status") is not None:
        new_status = TaskStatus(changes["status"])
        fields["status"] = new_status
        if new_status is TaskStatus.COMPLETED and existing.status is not TaskStatus.COMPLETED:
            fields["completed_at"] = now

    return replace(existing, **fields)


# ---- JSON shape ----


def task_to_dict(task: Task) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": task.id,
        "description": task.description,
        "category": task.category,
        "priority": task.priority.value,
        "status": task.status.value,
        "tags": list(task.tags),
        "createdAt": task.created_at.isoformat(),
        "updatedAt": task.updated_at.isoformat(),
    }
    if task.completed_at is not None:
        data["completedAt"] = task.completed_at.isoformat()
    return data


def _parse_ts(raw: Any, key: str) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"{key} must be an ISO-8601 string")
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        raise ValueError(f"{key} must carry a UTC offset")
    return ts


def task_from_dict(data: Mapping[str, Any]) -> Task:
    """
    Parse one persisted record.

    Raises KeyError/ValueError on malformed input; the store reports those as StorageError.
    """
    if not isinstance(data, Mapping):
        raise ValueError("task record must be an object")

    task_id = data["id"]
    if not isinstance(task_id, str) or not task_id:
        raise ValueError("id must be a non-empty string")

    tags = data.get("tags") or []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValueError("tags must be a list of strings")

    raw_completed = data.get("completedAt")

    return Task(
        id=task_id,
        description=str(data["description"]),
        category=str(data.get("category") or DEFAULT_CATEGORY),
        priority=TaskPriority(data.get("priority") or TaskPriority.MEDIUM),
        status=TaskStatus(data.get("status") or TaskStatus.PENDING),
        tags=tuple(tags),
        created_at=_parse_ts(data["createdAt"], "createdAt"),
        updated_at=_parse_ts(data["updatedAt"], "updatedAt"),
        completed_at=_parse_ts(raw_completed, "completedAt") if raw_completed is not None else None,
    )
