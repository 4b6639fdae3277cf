"""Loguru-based console and transcript output.

One ``Console`` is built per run and passed to every stage and component.
It owns two loguru sinks:

* the transcript file, which records every message at DEBUG and above no
  matter what the verbosity flags say;
* stderr, at INFO (DEBUG with ``verbose``), omitted entirely with ``silent``.
"""

from __future__ import annotations

import datetime
import sys
from pathlib import Path

from loguru import logger

from .models.results import StageResult

_CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"

TRANSCRIPT_SUFFIX = "-CleanupLogs_"


def transcript_name(hostname: str, when: datetime.datetime | None = None) -> str:
    """Return ``<hostname>-CleanupLogs_<YYYYmmdd_HHMMSS>.txt``."""
    when = when or datetime.datetime.now()
    return f"{hostname}{TRANSCRIPT_SUFFIX}{when:%Y%m%d_%H%M%S}.txt"


class Console:
    def __init__(self, verbose: bool = False, silent: bool = False):
        self.verbose = verbose
        self.silent = silent
        self.transcript: Path | None = None
        self._log = logger.bind(component="disk-reclaim")
        self._handler_ids: list[int] = []

    def open(self, log_dir: Path, hostname: str) -> Path:
        """Attach the sinks and return the transcript path."""
        logger.remove()
        log_dir.mkdir(parents=True, exist_ok=True)
        self.transcript = log_dir / transcript_name(hostname)

        self._handler_ids.append(logger.add(
            str(self.transcript),
            format=_FILE_FORMAT,
            level="DEBUG",
            encoding="utf-8",
            colorize=False,
        ))
        if not self.silent:
            self._handler_ids.append(logger.add(
                sys.stderr,
                format=_CONSOLE_FORMAT,
                level="DEBUG" if self.verbose else "INFO",
                colorize=True,
            ))
        return self.transcript

    def close(self) -> None:
        """Detach this console's sinks, flushing and closing the transcript."""
        for handler_id in self._handler_ids:
            logger.remove(handler_id)
        self._handler_ids.clear()

    def __enter__(self) -> "Console":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── message levels ────────────────────────────────────────────────────────

    def info(self, message: str) -> None:
        self._log.info(message)

    def success(self, message: str) -> None:
        self._log.success(message)

    def warning(self, message: str) -> None:
        self._log.warning(message)

    def error(self, message: str) -> None:
        self._log.error(message)

    def detail(self, message: str) -> None:
        """Item-level detail: shown on the console with --verbose only."""
        self._log.debug(message)

    def banner(self, message: str) -> None:
        self._log.info(f"[disk-reclaim] {message}")

    def report(self, result: StageResult) -> None:
        """Emit the one message a stage is allowed to produce."""
        self._log.log(result.level, f"{result.stage}: {result.message}")
