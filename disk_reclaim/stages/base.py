"""Base classes for all cleanup stages."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import CleanupConfig
from ..console import Console
from ..executors.base import CommandExecutor
from ..models.results import StageResult


@dataclass
class StageContext:
    executor: CommandExecutor
    config: CleanupConfig
    console: Console

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run


def summarize(result: StageResult, dry_run: bool) -> StageResult:
    """Fill in level and message from the per-item outcome."""
    if not result.succeeded:
        result.level = "ERROR"
        result.message = result.message or "failed"
        return result

    total = result.items_affected
    if total == 0:
        result.level, result.message = "INFO", "nothing to clean"
        return result
    if dry_run:
        result.level, result.message = "INFO", f"dry run: {total} items would be removed"
        return result

    removed = result.removed
    skipped = total - removed
    if removed == 0:
        result.level = "WARNING"
        result.message = f"none of {total} items could be removed (in use or access denied)"
    else:
        result.level = "SUCCESS"
        result.message = f"removed {removed} of {total} items"
        if skipped:
            result.message += f"; {skipped} skipped (in use or access denied)"
    return result


def fold_warnings(result: StageResult) -> StageResult:
    """Append collected warnings to the message so the stage reports one line."""
    if not result.warnings:
        return result
    result.message = "; ".join([result.message, *result.warnings]) if result.message else "; ".join(result.warnings)
    if result.level in ("INFO", "SUCCESS"):
        result.level = "WARNING"
    return result


class BaseStage(ABC):
    name: str = "base"
    title: str = "Base"

    def __init__(self, ctx: StageContext):
        self.ctx = ctx

    @property
    def console(self) -> Console:
        return self.ctx.console

    @property
    def executor(self) -> CommandExecutor:
        return self.ctx.executor

    @abstractmethod
    def _run(self) -> StageResult:
        """Implement in subclass; may leave message empty to get a summary."""
        ...

    def run(self) -> StageResult:
        """Wrap _run in try/except and report; never raises."""
        self.console.detail(f"{self.title}...")
        try:
            result = self._run()
            if not result.message:
                result = summarize(result, self.ctx.dry_run)
            result = fold_warnings(result)
        except Exception as exc:  # noqa: BLE001
            result = StageResult.failed(self.name, f"{self.title} failed: {exc}")
        self.console.report(result)
        return result
