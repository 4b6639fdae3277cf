"""Free space on the target volume, before and after the run."""

from __future__ import annotations

from ..errors import CommandError, FreeSpaceError
from ..executors.base import CommandExecutor
from ..models.schema import FreeSpaceSample, ProbeStage


class FreeSpaceProbe:
    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def sample(self, drive: str, stage: ProbeStage) -> FreeSpaceSample:
        """Raises FreeSpaceError when the volume cannot be queried."""
        try:
            free = self.executor.free_bytes(drive)
        except CommandError as exc:
            raise FreeSpaceError(f"cannot query free space on {drive}: {exc}") from exc
        return FreeSpaceSample(drive=drive, stage=stage, free_bytes=free)


def recovered_gb(initial: FreeSpaceSample, final: FreeSpaceSample) -> float:
    """GB freed between two samples; negative if the volume filled up meanwhile."""
    return round((final.free_bytes - initial.free_bytes) / (1024 ** 3), 2)
