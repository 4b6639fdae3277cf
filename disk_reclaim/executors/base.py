"""The command-executor capability that every stage is written against."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models.schema import ExecutionTarget

_TOKEN_RE = re.compile(r"%(SystemDrive|SystemRoot|ProgramData|ProgramFiles)%", re.IGNORECASE)


@dataclass
class ProcessResult:
    returncode: int | None
    output: str = ""


class CommandExecutor(ABC):
    """Runs commands and maps Windows paths for one execution target.

    ``LocalExecutor`` acts on this machine; ``RemoteExecutor`` forwards
    commands over PowerShell remoting and reaches files through the target's
    administrative share.
    """

    def __init__(self, target: ExecutionTarget):
        self.target = target

    @property
    def is_remote(self) -> bool:
        return self.target.is_remote

    @property
    def host(self) -> str:
        return self.target.host

    def expand(self, pattern: str) -> str:
        """Replace target-relative tokens with the target's own locations."""
        values = {
            "systemdrive":  self.target.system_drive,
            "systemroot":   self.target.system_root,
            "programdata":  self.target.system_drive + "\\ProgramData",
            "programfiles": self.target.system_drive + "\\Program Files",
        }
        return _TOKEN_RE.sub(lambda m: values[m.group(1).lower()], pattern)

    def resolve(self, pattern: str) -> str:
        """Expand tokens, then map to a path this process can open."""
        return self.to_local_path(self.expand(pattern))

    @abstractmethod
    def to_local_path(self, windows_path: str) -> str:
        """Map a path as seen on the target to one reachable from here."""

    @abstractmethod
    def run_powershell(self, script: str, timeout: float | None = 60) -> str:
        """Run a PowerShell script on the target; raise CommandError on failure."""

    @abstractmethod
    def run_process(self, executable: str, args: list[str], hidden: bool = True) -> ProcessResult:
        """Run an executable on the target and wait for it without a timeout."""

    @abstractmethod
    def free_bytes(self, drive: str) -> int:
        """Return free bytes on ``drive`` (``"C:"``) of the target."""
