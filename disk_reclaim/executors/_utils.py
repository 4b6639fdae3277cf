"""Windows process helpers shared by the local and remote executors."""

from __future__ import annotations

import ctypes
import os
import subprocess
import sys

from ..errors import CommandError

CREATE_NO_WINDOW = 0x08000000

# Environment variable carrying the remote credential's password into the
# PowerShell child process, so it never appears on a command line.
SECRET_ENV = "DISK_RECLAIM_SECRET"

_UTF8_PREAMBLE = (
    "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; "
    "[Console]::InputEncoding  = [System.Text.Encoding]::UTF8; "
)


def is_admin() -> bool:
    """Return True if the current process has administrator privileges."""
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except Exception:
        return False


def ps_quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def _decode(raw: bytes) -> str:
    """Decode subprocess bytes with UTF-8; fall back to cp1252 then replace."""
    for enc in ("utf-8-sig", "utf-8", "cp1252"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def _popen_kwargs(hidden: bool = True) -> dict:
    kwargs: dict = {"capture_output": True}
    if sys.platform == "win32" and hidden:
        kwargs["creationflags"] = CREATE_NO_WINDOW
    return kwargs


def run_powershell(cmd: str, timeout: float | None = 60, secret: str | None = None) -> str:
    """Run a PowerShell command and return stdout as a string.

    ``timeout=None`` waits indefinitely; maintenance tools such as DISM can
    legitimately run for tens of minutes.

    Raises CommandError on non-zero exit code.
    """
    env = None
    if secret is not None:
        env = dict(os.environ)
        env[SECRET_ENV] = secret

    result = subprocess.run(
        [
            "powershell",
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy", "Bypass",
            "-Command", _UTF8_PREAMBLE + cmd,
        ],
        timeout=timeout,
        env=env,
        **_popen_kwargs(),
    )
    stdout = _decode(result.stdout).strip()
    stderr = _decode(result.stderr).strip()

    if result.returncode != 0:
        raise CommandError(stderr or f"PowerShell exited with code {result.returncode}")
    return stdout


def run_process(args: list[str], timeout: float | None = None, hidden: bool = True) -> tuple[int, str]:
    """Run an executable and return ``(returncode, combined output)``.

    Unlike run_powershell this never inspects the exit code; the caller
    decides what success means for the tool it launched.
    """
    result = subprocess.run(args, timeout=timeout, **_popen_kwargs(hidden))
    output = _decode(result.stdout).strip()
    errors = _decode(result.stderr).strip()
    return result.returncode, "\n".join(part for part in (output, errors) if part)
