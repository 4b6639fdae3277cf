from .base import BaseStage, StageContext, summarize
from .files import BrowserCacheStage, SystemLogsStage, TempFilesStage
from .guarded import OfficeCacheStage, UpdateCacheStage
from .maintenance import (
    ComponentStoreStage,
    DiskCleanupStage,
    RecycleBinStage,
    RepositoryRepairStage,
)

# Fixed execution order.
STAGE_CLASSES: tuple[type[BaseStage], ...] = (
    TempFilesStage,
    DiskCleanupStage,
    ComponentStoreStage,
    RecycleBinStage,
    UpdateCacheStage,
    BrowserCacheStage,
    SystemLogsStage,
    OfficeCacheStage,
)


def build_stages(ctx: StageContext) -> list[BaseStage]:
    """Instantiate the enabled stages in execution order."""
    stages = [cls(ctx) for cls in STAGE_CLASSES if ctx.config.is_enabled(cls.name)]
    if ctx.config.repair_wmi:
        stages.append(RepositoryRepairStage(ctx))
    return stages


__all__ = [
    "STAGE_CLASSES",
    "BaseStage",
    "BrowserCacheStage",
    "ComponentStoreStage",
    "DiskCleanupStage",
    "OfficeCacheStage",
    "RecycleBinStage",
    "RepositoryRepairStage",
    "StageContext",
    "SystemLogsStage",
    "TempFilesStage",
    "UpdateCacheStage",
    "build_stages",
    "summarize",
]
