"""Execute on the machine running disk-reclaim."""

from __future__ import annotations

import psutil

from ..errors import FreeSpaceError
from . import _utils
from .base import CommandExecutor, ProcessResult


class LocalExecutor(CommandExecutor):

    def to_local_path(self, windows_path: str) -> str:
        return windows_path

    def run_powershell(self, script: str, timeout: float | None = 60) -> str:
        return _utils.run_powershell(script, timeout=timeout)

    def run_process(self, executable: str, args: list[str], hidden: bool = True) -> ProcessResult:
        returncode, output = _utils.run_process([executable, *args], hidden=hidden)
        return ProcessResult(returncode=returncode, output=output)

    def free_bytes(self, drive: str) -> int:
        try:
            return psutil.disk_usage(drive.rstrip("\\") + "\\").free
        except (OSError, SystemError) as exc:
            raise FreeSpaceError(f"cannot query free space on {drive}: {exc}") from exc
