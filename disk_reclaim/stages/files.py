"""Stages that delete files directly: temp folders, browser caches, old logs."""

from __future__ import annotations

from pathlib import Path

from ..console import TRANSCRIPT_SUFFIX
from ..models.results import StageResult
from ..reclaim.logs import AgedLogPruner
from ..reclaim.paths import PathReclaimer
from .base import BaseStage


class _PathStage(BaseStage):
    catalog: str = ""

    def _run(self) -> StageResult:
        reclaimer = PathReclaimer(self.console, dry_run=self.ctx.dry_run)
        patterns = getattr(self.ctx.config.paths, self.catalog)
        return reclaimer.reclaim_all([self.executor.resolve(p) for p in patterns], self.name)


class TempFilesStage(_PathStage):
    name = "temp_files"
    title = "Temporary files"
    catalog = "temp_files"


class BrowserCacheStage(_PathStage):
    name = "browser_cache"
    title = "Browser caches"
    catalog = "browser_cache"


class SystemLogsStage(BaseStage):
    name = "system_logs"
    title = "System logs"

    def _run(self) -> StageResult:
        cfg = self.ctx.config
        days = cfg.retention.log_days
        pruner = AgedLogPruner(self.console, dry_run=self.ctx.dry_run)

        result = StageResult(stage=self.name)
        for rule in cfg.paths.system_logs:
            result.merge(pruner.prune(
                self.executor.resolve(rule.directory),
                rule.pattern,
                days,
                exclude=rule.exclude,
                stage=self.name,
            ))

        # Our own transcripts live on the machine running the tool.
        transcript = self.console.transcript
        log_dir = Path(transcript.parent if transcript else cfg.output.log_dir)
        result.merge(pruner.prune(
            str(log_dir),
            f"*{TRANSCRIPT_SUFFIX}*.txt",
            days,
            exclude=transcript.name if transcript else None,
            stage=self.name,
        ))
        return result
