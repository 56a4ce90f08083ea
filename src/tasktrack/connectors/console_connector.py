# src/tasktrack/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging

from ..cli.commands import registry as command_registry
from ..core.engine import TaskEngine
from ..errors import TaskTrackError

logger = logging.getLogger(__name__)

PROMPT = "tasktrack> "


async def run_command(engine: TaskEngine, line: str) -> tuple[bool, str]:
    """
    Run one slash command. Returns (ok, text to show).

    Plain text without a leading slash is treated as /add.
    """
    if not line.startswith("/"):
        line = f"/add {line}"

    try:
        reply = await command_registry.handle(engine, line)
    except TaskTrackError as e:
        logger.debug("Command failed: %s", e.message)
        return False, f"Error: {e.message}"
    except Exception:
        logger.exception("Command handler crashed.")
        return False, "Internal error while handling a command."

    return True, reply or ""


async def run_console_loop(engine: TaskEngine) -> None:
    logger.info("Console connector started.")
    print("Type /help for commands, /exit to quit. Plain text adds a task.")

    while True:
        try:
            # input() blocks, keep it off the event loop.
            user_input = (await asyncio.to_thread(input, PROMPT)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        _, text = await run_command(engine, user_input)
        if text:
            print(text)

    logger.info("Console connector finished.")
