"""Age-based pruning of log files."""

from __future__ import annotations

import datetime
import fnmatch
import os

from ..console import Console
from ..models.results import ItemResult, StageResult
from .paths import describe_error, remove_file


class AgedLogPruner:
    """Delete log files last modified before ``now - retention_days``.

    Name matching follows Windows rules (case-insensitive). The file named by
    ``exclude`` is the log currently being written and is never touched.
    """

    def __init__(self, console: Console, dry_run: bool = False):
        self.console = console
        self.dry_run = dry_run

    def prune(
        self,
        directory: str,
        pattern: str,
        retention_days: int,
        exclude: str | None = None,
        stage: str = "logs",
        now: datetime.datetime | None = None,
    ) -> StageResult:
        now = now or datetime.datetime.now()
        cutoff = (now - datetime.timedelta(days=retention_days)).timestamp()
        pattern = pattern.lower()
        protected = exclude.lower() if exclude else None
        result = StageResult(stage=stage)

        try:
            entries = list(os.scandir(directory))
        except (FileNotFoundError, NotADirectoryError):
            self.console.detail(f"{stage}: {directory} does not exist")
            return result
        except OSError as exc:
            reason = describe_error(exc)
            self.console.detail(f"{stage}: cannot read {directory} ({reason})")
            result.items.append(ItemResult(path=directory, attempted=False, skipped_reason=reason))
            return result

        for entry in entries:
            name = entry.name.lower()
            if not fnmatch.fnmatchcase(name, pattern) or name == protected:
                continue
            try:
                if not entry.is_file() or entry.stat().st_mtime >= cutoff:
                    continue
            except OSError as exc:
                self.console.detail(f"{stage}: cannot stat {entry.path}: {exc}")
                continue

            result.items_affected += 1
            if self.dry_run:
                self.console.detail(f"{stage}: would delete {entry.path}")
                result.items.append(ItemResult(path=entry.path, attempted=False, skipped_reason="dry-run"))
                continue
            try:
                remove_file(entry.path)
            except FileNotFoundError:
                result.items.append(ItemResult(path=entry.path, succeeded=True))
            except OSError as exc:
                reason = describe_error(exc)
                self.console.detail(f"{stage}: skipped {entry.path} ({reason})")
                result.items.append(ItemResult(path=entry.path, skipped_reason=reason))
            else:
                result.items.append(ItemResult(path=entry.path, succeeded=True))

        return result
