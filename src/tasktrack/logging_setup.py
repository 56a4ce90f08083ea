# src/tasktrack/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILENAME = "tasktrack.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - allow tasktrack logs at the configured level
    - everything else (third-party, captured py.warnings) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name == "tasktrack" or name.startswith("tasktrack."):
            return True

        # Python warnings (py.warnings) and any third-party logger: errors only.
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    log_to_file: bool = True,
) -> None:
    """
    Configure logging with:
    - Console handler (stderr): filtered, so it never mixes chatter into command output
    - File handler: full logs for debugging (optional)

    Call this ONCE, very early (before first logger.info).
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_to_file:
        log_dir = Path(log_dir).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / LOG_FILENAME), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    # aiofiles runs file I/O on the default executor; asyncio debug chatter is not useful here.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
