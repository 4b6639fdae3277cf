"""Stages that hand the work to built-in Windows tools."""

from __future__ import annotations

from ..models.results import StageResult
from ..reclaim.recycle_bin import RecycleBinReclaimer
from ..reclaim.tools import ExternalToolInvoker
from .base import BaseStage


class _ToolStage(BaseStage):

    @property
    def tools(self) -> ExternalToolInvoker:
        return ExternalToolInvoker(self.executor, self.console, dry_run=self.ctx.dry_run)


class DiskCleanupStage(_ToolStage):
    name = "disk_cleanup"
    title = "Disk Cleanup (cleanmgr)"

    def _run(self) -> StageResult:
        settings = self.ctx.config.disk_cleanup
        return self.tools.run_disk_cleanup(settings.categories, settings.mode, stage=self.name)


class ComponentStoreStage(_ToolStage):
    name = "component_store"
    title = "Component store (DISM)"

    def _run(self) -> StageResult:
        return self.tools.run_component_cleanup(self.ctx.config.component_store.mode, stage=self.name)


class RepositoryRepairStage(_ToolStage):
    name = "repair_repository"
    title = "WMI repository salvage"

    def _run(self) -> StageResult:
        return self.tools.repair_repository(stage=self.name)


class RecycleBinStage(BaseStage):
    name = "recycle_bin"
    title = "Recycle Bin"

    def _run(self) -> StageResult:
        days = self.ctx.config.retention.recycle_bin_days
        reclaimer = RecycleBinReclaimer(self.executor, self.console, dry_run=self.ctx.dry_run)
        result = reclaimer.reclaim(days, stage=self.name)
        if result.succeeded and result.items_affected == 0:
            result.level, result.message = "INFO", f"no entries deleted {days} or more days ago"
        return result
