from .base import CommandExecutor, ProcessResult
from .local import LocalExecutor
from .remote import RemoteExecutor
from .target import build_executor, establish_remoting, resolve_target

__all__ = [
    "CommandExecutor",
    "LocalExecutor",
    "ProcessResult",
    "RemoteExecutor",
    "build_executor",
    "establish_remoting",
    "resolve_target",
]
