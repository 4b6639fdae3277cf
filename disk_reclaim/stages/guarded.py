"""Stages whose files are held open by a Windows service."""

from __future__ import annotations

from ..models.results import StageResult
from ..reclaim.paths import PathReclaimer
from ..reclaim.services import ServiceGuardedCleanup
from .base import BaseStage


class _GuardedStage(BaseStage):

    def _reclaimer(self) -> PathReclaimer:
        return PathReclaimer(self.console, dry_run=self.ctx.dry_run)

    def _guard(self, reclaimer: PathReclaimer) -> ServiceGuardedCleanup:
        return ServiceGuardedCleanup(
            self.executor,
            self.console,
            reclaimer,
            dry_run=self.ctx.dry_run,
            stop_wait=self.ctx.config.services.stop_wait_seconds,
        )


class UpdateCacheStage(_GuardedStage):
    name = "update_cache"
    title = "Windows Update cache"
    service = "wuauserv"

    def _run(self) -> StageResult:
        guard = self._guard(self._reclaimer())
        return guard.run(self.service, self.ctx.config.paths.update_cache, self.name)


class OfficeCacheStage(_GuardedStage):
    name = "office_cache"
    title = "Office caches"
    service = "ClickToRunSvc"

    def _run(self) -> StageResult:
        paths = self.ctx.config.paths
        reclaimer = self._reclaimer()
        result = self._guard(reclaimer).run(self.service, paths.office_installer, self.name)
        result.merge(reclaimer.reclaim_all(
            [self.executor.resolve(p) for p in paths.office_user], self.name
        ))
        return result
