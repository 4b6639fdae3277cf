from .free_space import FreeSpaceProbe, recovered_gb
from .logs import AgedLogPruner
from .paths import PathReclaimer
from .recycle_bin import RecycleBinReclaimer
from .services import ServiceGuardedCleanup
from .tools import ExternalToolInvoker

__all__ = [
    "AgedLogPruner",
    "ExternalToolInvoker",
    "FreeSpaceProbe",
    "PathReclaimer",
    "RecycleBinReclaimer",
    "ServiceGuardedCleanup",
    "recovered_gb",
]
