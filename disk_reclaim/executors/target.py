"""Resolve where the run executes and confirm remote reachability."""

from __future__ import annotations

import json
import os
import socket
from typing import Callable

from ..errors import CommandError, RemotingUnavailableError
from ..models.schema import ExecutionTarget
from . import _utils
from .base import CommandExecutor
from .local import LocalExecutor
from .remote import RemoteExecutor

_LOCAL_ALIASES = {"", ".", "localhost", "127.0.0.1"}


def _is_local_name(name: str) -> bool:
    name = name.strip().lower()
    if name in _LOCAL_ALIASES:
        return True
    this_host = socket.gethostname().lower()
    return name in (this_host, this_host.split(".")[0])


def resolve_target(
    computer: str | None,
    local: bool,
    credential_user: str | None = None,
    prompt: Callable[[str], str] = input,
) -> ExecutionTarget:
    """Build the ExecutionTarget from --local / --computer, prompting if neither."""
    if not local and computer is None:
        computer = prompt("Computer name to clean (blank for this computer): ").strip()

    if local or _is_local_name(computer or ""):
        return ExecutionTarget(
            host=socket.gethostname(),
            is_remote=False,
            system_drive=os.environ.get("SystemDrive", "C:"),
            system_root=os.environ.get("SystemRoot", "C:\\Windows"),
        )
    return ExecutionTarget(
        host=computer.strip(),
        is_remote=True,
        remoting_available=False,
        credential_user=credential_user,
    )


def build_executor(target: ExecutionTarget, secret: str | None = None) -> CommandExecutor:
    if target.is_remote:
        return RemoteExecutor(target, secret=secret)
    return LocalExecutor(target)


def establish_remoting(executor: CommandExecutor) -> None:
    """Confirm PowerShell remoting to a remote target and learn its layout.

    Marks ``remoting_available`` on success. A local executor is a no-op.

    Raises:
        RemotingUnavailableError: WinRM does not answer, or the session
            cannot be opened with the supplied credentials.
    """
    target = executor.target
    if not target.is_remote:
        return

    try:
        _utils.run_powershell(
            f"Test-WSMan -ComputerName {_utils.ps_quote(target.host)} -ErrorAction Stop | Out-Null",
            timeout=60,
        )
    except (CommandError, OSError) as exc:
        raise RemotingUnavailableError(f"{target.host} is not reachable over WinRM: {exc}") from exc

    target.remoting_available = True
    try:
        raw = executor.run_powershell(
            "@{SystemDrive = $env:SystemDrive; SystemRoot = $env:SystemRoot} | ConvertTo-Json -Compress"
        )
        layout = json.loads(raw)
    except (CommandError, OSError, ValueError) as exc:
        target.remoting_available = False
        raise RemotingUnavailableError(f"cannot open a remote session on {target.host}: {exc}") from exc

    target.system_drive = layout.get("SystemDrive") or target.system_drive
    target.system_root = layout.get("SystemRoot") or target.system_root
