# src/tasktrack/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..core.engine import TaskEngine, TaskStats
from ..errors import NotFoundError, TaskTrackError
from ..tasks.task_models import Task

CommandHandler = Callable[[TaskEngine, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, engine: TaskEngine, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Engine errors (ValidationError, NotFoundError, StorageError) propagate to the caller.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(engine, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


@dataclass(slots=True)
class ParsedArgs:
    """Words plus inline markers: @category !priority %status #tag."""

    words: list[str] = field(default_factory=list)
    category: str | None = None
    priority: str | None = None
    status: str | None = None
    tags: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(self.words)


def parse_args(args: list[str]) -> ParsedArgs:
    parsed = ParsedArgs()
    for a in args:
        if len(a) > 1 and a[0] == "@":
            parsed.category = a[1:]
        elif len(a) > 1 and a[0] == "!":
            parsed.priority = a[1:].lower()
        elif len(a) > 1 and a[0] == "%":
            parsed.status = a[1:].lower()
        elif len(a) > 1 and a[0] == "#":
            parsed.tags.append(a[1:])
        else:
            parsed.words.append(a)
    return parsed


def format_task(task: Task) -> str:
    tags = " ".join(f"#{t}" for t in task.tags)
    line = (
        f"[{task.id[:SHORT_ID_LEN]}] ({task.status.value}) !{task.priority.value} "
        f"@{task.category} {task.description}"
    )
    return f"{line} {tags}" if tags else line


def format_task_details(task: Task) -> str:
    lines = [
        f"id:          {task.id}",
        f"description: {task.description}",
        f"category:    {task.category}",
        f"priority:    {task.priority.value}",
        f"status:      {task.status.value}",
        f"tags:        {', '.join(task.tags) if task.tags else '-'}",
        f"created:     {task.created_at.isoformat()}",
        f"updated:     {task.updated_at.isoformat()}",
    ]
    if task.completed_at is not None:
        lines.append(f"completed:   {task.completed_at.isoformat()}")
    return "\n".join(lines)


def format_stats(stats: TaskStats) -> str:
    lines = [f"Total: {stats.total}", "By status:"]
    lines += [f"  {k}: {v}" for k, v in stats.by_status.items()]
    lines.append("By priority:")
    lines += [f"  {k}: {v}" for k, v in stats.by_priority.items()]
    lines.append("By category:")
    lines += [f"  {k}: {v}" for k, v in sorted(stats.by_category.items())] or ["  (none)"]
    return "\n".join(lines)


async def resolve_task_id(engine: TaskEngine, raw: str) -> str:
    """Accept a full id or a unique prefix (as printed by /list)."""
    if await engine.get_task(raw) is not None:
        return raw
    matches = [t.id for t in await engine.list_tasks() if t.id.startswith(raw)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise TaskTrackError(f"Ambiguous task id {raw}: {len(matches)} tasks match, use more characters")
    raise NotFoundError(raw)


# ---- handlers ----


async def cmd_help(engine: TaskEngine, args: list[str]) -> str:
    return registry.build_help()


async def cmd_add(engine: TaskEngine, args: list[str]) -> str:
    """
    /add Write docs @work !high #docs  -> create a task
    """
    parsed = parse_args(args)
    task = await engine.create_task(
        description=parsed.text,
        category=parsed.category,
        priority=parsed.priority,
        tags=parsed.tags or None,
    )
    return f"Added: {format_task(task)}"


async def cmd_list(engine: TaskEngine, args: list[str]) -> str:
    """
    /list                     -> all tasks, newest first
    /list %pending @work !high -> only tasks matching every marker
    """
    parsed = parse_args(args)
    tasks = await engine.list_tasks(
        status=parsed.status,
        category=parsed.category,
        priority=parsed.priority,
    )
    if not tasks:
        return "No tasks."
    return "\n".join(format_task(t) for t in tasks)


async def cmd_show(engine: TaskEngine, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    task = await engine.get_task(await resolve_task_id(engine, args[0]))
    if task is None:
        return f"Task not found: {args[0]}"
    return format_task_details(task)


async def cmd_update(engine: TaskEngine, args: list[str]) -> str:
    """
    /update <id> [new text] [@category] [!priority] [%status] [#tag ...]

    Tags given here replace the existing tag list.
    """
    if not args:
        return "Usage: /update <id> [text] [@category] [!priority] [%status] [#tag ...]"

    task_id = await resolve_task_id(engine, args[0])
    parsed = parse_args(args[1:])

    changes: dict[str, object] = {}
    if parsed.words:
        changes["description"] = parsed.text
    if parsed.category is not None:
        changes["category"] = parsed.category
    if parsed.priority is not None:
        changes["priority"] = parsed.priority
    if parsed.status is not None:
        changes["status"] = parsed.status
    if parsed.tags:
        changes["tags"] = parsed.tags

    if not changes:
        return "Nothing to update."

    task = await engine.update_task(task_id, **changes)
    return f"Updated: {format_task(task)}"


async def cmd_done(engine: TaskEngine, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = await engine.complete_task(await resolve_task_id(engine, args[0]))
    return f"Completed: {format_task(task)}"


async def cmd_rm(engine: TaskEngine, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    try:
        task_id = await resolve_task_id(engine, args[0])
    except NotFoundError:
        task_id = args[0]
    if await engine.delete_task(task_id):
        return f"Deleted: {task_id}"
    return f"No task with id {args[0]}."


async def cmd_search(engine: TaskEngine, args: list[str]) -> str:
    if not args:
        return "Usage: /search <text>"
    tasks = await engine.search_tasks(" ".join(args))
    if not tasks:
        return "No matches."
    return "\n".join(format_task(t) for t in tasks)


async def cmd_stats(engine: TaskEngine, args: list[str]) -> str:
    return format_stats(await engine.get_stats())


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <text> [@category] [!priority] [#tag ...].")
registry.register("list", cmd_list, help_text="List tasks: /list [%status] [@category] [!priority].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register(
    "update",
    cmd_update,
    help_text="Change a task: /update <id> [text] [@category] [!priority] [%status] [#tag ...].",
)
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.", aliases=["complete"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register("search", cmd_search, help_text="Search description, category and tags: /search <text>.")
registry.register("stats", cmd_stats, help_text="Show task counts by status, priority and category.")
