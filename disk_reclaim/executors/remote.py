"""Execute on a remote computer through PowerShell remoting."""

from __future__ import annotations

import json
import re

from ..errors import CommandError, FreeSpaceError, RemotingUnavailableError
from ..models.schema import ExecutionTarget
from . import _utils
from .base import CommandExecutor, ProcessResult

_DRIVE_PATH_RE = re.compile(r"^([A-Za-z]):\\?(.*)$")


class RemoteExecutor(CommandExecutor):
    """Wraps every script in ``Invoke-Command -ComputerName``.

    Each call is an independent remoting session; nothing spans stages.
    Files are reached through the administrative share (``\\\\host\\C$``).
    """

    def __init__(self, target: ExecutionTarget, secret: str | None = None):
        super().__init__(target)
        self._secret = secret

    def _ensure_available(self) -> None:
        if not self.target.remoting_available:
            raise RemotingUnavailableError(
                f"PowerShell remoting to {self.host} has not been established"
            )

    def _wrap(self, script: str) -> str:
        prefix = ""
        credential = ""
        if self.target.credential_user:
            prefix = (
                "$secure = ConvertTo-SecureString $env:" + _utils.SECRET_ENV + " -AsPlainText -Force; "
                "$cred = New-Object System.Management.Automation.PSCredential("
                f"{_utils.ps_quote(self.target.credential_user)}, $secure); "
            )
            credential = " -Credential $cred"
        return (
            f"{prefix}Invoke-Command -ComputerName {_utils.ps_quote(self.host)}{credential} "
            f"-ErrorAction Stop -ScriptBlock {{ {script} }}"
        )

    def to_local_path(self, windows_path: str) -> str:
        m = _DRIVE_PATH_RE.match(windows_path)
        if not m:
            return windows_path
        drive, rest = m.groups()
        return f"\\\\{self.host}\\{drive.upper()}$\\{rest}"

    def run_powershell(self, script: str, timeout: float | None = 60) -> str:
        self._ensure_available()
        return _utils.run_powershell(self._wrap(script), timeout=timeout, secret=self._secret)

    def run_process(self, executable: str, args: list[str], hidden: bool = True) -> ProcessResult:
        arg_list = ", ".join(_utils.ps_quote(a) for a in args)
        script = (
            f"$out = & {_utils.ps_quote(executable)} @({arg_list}) 2>&1 | Out-String; "
            "[pscustomobject]@{Output = $out; ExitCode = $LASTEXITCODE} | ConvertTo-Json -Compress"
        )
        raw = self.run_powershell(script, timeout=None)
        try:
            data = json.loads(raw)
        except ValueError:
            return ProcessResult(returncode=None, output=raw)
        code = data.get("ExitCode")
        return ProcessResult(
            returncode=int(code) if code is not None else None,
            output=(data.get("Output") or "").strip(),
        )

    def free_bytes(self, drive: str) -> int:
        script = f"(Get-CimInstance Win32_LogicalDisk -Filter \"DeviceID='{drive}'\").FreeSpace"
        try:
            raw = self.run_powershell(script)
        except (CommandError, RemotingUnavailableError, OSError) as exc:
            raise FreeSpaceError(f"cannot query free space on {self.host} {drive}: {exc}") from exc
        try:
            return int(raw.strip())
        except ValueError:
            raise FreeSpaceError(
                f"volume {drive} not found on {self.host} (got {raw!r})"
            ) from None
