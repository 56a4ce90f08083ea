# src/tasktrack/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the engine, then either:
- runs a single command given on the command line (`tasktrack add Write docs @work`), or
- starts the interactive console REPL when no arguments are given.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from ..cli.bootstrap import create_engine
from ..config import get_settings
from ..connectors.console_connector import run_command, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _as_command_line(argv: list[str]) -> str:
    name = argv[0]
    if not name.startswith("/"):
        name = f"/{name}"
    return " ".join([name, *argv[1:]])


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    settings = get_settings()

    console_level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    setup_logging(
        log_dir=settings.data_dir,
        console_level=console_level,
        log_to_file=settings.log_to_file,
    )

    logger.info("Starting %s (tasks=%s)...", settings.app_name, settings.tasks_path)

    # IMPORTANT: reuse same settings object
    engine = create_engine(settings=settings)

    if argv:
        ok, text = asyncio.run(run_command(engine, _as_command_line(argv)))
        if text:
            print(text, file=sys.stdout if ok else sys.stderr)
        return 0 if ok else 1

    try:
        asyncio.run(run_console_loop(engine))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
