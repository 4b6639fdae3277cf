"""Pydantic v2 models describing the run target and free-space samples."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, computed_field


class ComponentCleanupMode(str, Enum):
    """How far DISM is allowed to go when cleaning the component store.

    AGGRESSIVE resets the servicing baseline: updates applied before the run
    can no longer be uninstalled afterwards.
    """

    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"


class DiskCleanupMode(str, Enum):
    UNATTENDED = "unattended"
    VISIBLE = "visible"


class ProbeStage(str, Enum):
    INITIAL = "initial"
    FINAL = "final"


class ExecutionTarget(BaseModel):
    host: str
    is_remote: bool = False
    remoting_available: bool = False
    credential_user: Optional[str] = None
    system_drive: str = "C:"
    system_root: str = "C:\\Windows"

    @property
    def can_execute(self) -> bool:
        """Local targets always can; remote ones only once remoting is confirmed."""
        return not self.is_remote or self.remoting_available


class FreeSpaceSample(BaseModel):
    drive: str
    stage: ProbeStage
    free_bytes: int

    @computed_field
    @property
    def free_gb(self) -> float:
        return round(self.free_bytes / (1024 ** 3), 2)
