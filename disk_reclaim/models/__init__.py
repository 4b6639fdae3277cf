from .results import ItemResult, StageResult
from .schema import (
    ComponentCleanupMode,
    DiskCleanupMode,
    ExecutionTarget,
    FreeSpaceSample,
    ProbeStage,
)

__all__ = [
    "ComponentCleanupMode",
    "DiskCleanupMode",
    "ExecutionTarget",
    "FreeSpaceSample",
    "ItemResult",
    "ProbeStage",
    "StageResult",
]
