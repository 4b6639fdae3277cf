"""Invoke the built-in Windows maintenance utilities.

Three tools are driven from here:

* ``cleanmgr.exe`` (Disk Cleanup). The configured VolumeCaches handlers are
  flagged in the registry under ``StateFlags0001`` and the tool is launched
  with ``/sagerun:1`` so it cleans exactly that selection.
* ``Dism.exe`` (component store). ``CONSERVATIVE`` removes superseded
  service-pack files only. ``AGGRESSIVE`` runs
  ``/StartComponentCleanup /ResetBase``: every superseded component is
  removed and the servicing baseline is reset, so updates installed before
  the run can no longer be uninstalled.
* ``winmgmt.exe /salvagerepository`` (WMI repository repair).

None of the launches has a timeout; DISM in particular may run for tens of
minutes on a neglected machine.
"""

from __future__ import annotations

from ..console import Console
from ..executors import _utils
from ..executors.base import CommandExecutor
from ..models.results import StageResult
from ..models.schema import ComponentCleanupMode, DiskCleanupMode

SAGESET_ID = 1
STATE_FLAGS_VALUE = f"StateFlags{SAGESET_ID:04d}"
_VOLUME_CACHES = r"HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\Explorer\VolumeCaches"

DISM_SUCCESS_TEXT = "The operation completed successfully"

DISM_ARGS: dict[ComponentCleanupMode, list[str]] = {
    ComponentCleanupMode.CONSERVATIVE: ["/Online", "/Cleanup-Image", "/SPSuperseded"],
    ComponentCleanupMode.AGGRESSIVE: ["/Online", "/Cleanup-Image", "/StartComponentCleanup", "/ResetBase"],
}

_WINDOW_STYLE = {
    DiskCleanupMode.UNATTENDED: "Hidden",
    DiskCleanupMode.VISIBLE: "Normal",
}


def _mark_categories_script(categories, write: bool = True) -> str:
    """Count the categories whose handler exists, flagging them when ``write``."""
    names = ", ".join(_utils.ps_quote(c) for c in categories)
    mark = (
        f"Set-ItemProperty -LiteralPath $key -Name '{STATE_FLAGS_VALUE}' -Value 2 -Type DWord -ErrorAction Stop; "
        if write else ""
    )
    return (
        f"$root = {_utils.ps_quote(_VOLUME_CACHES)}; $marked = 0; "
        f"foreach ($name in @({names})) {{ "
        "$key = Join-Path $root $name; "
        "if (Test-Path -LiteralPath $key) { "
        f"{mark}"
        "$marked++ } }; "
        "$marked"
    )


def _cleanmgr_script(mode: DiskCleanupMode) -> str:
    return (
        "$p = Start-Process -FilePath 'cleanmgr.exe' "
        f"-ArgumentList '/sagerun:{SAGESET_ID}' -WindowStyle {_WINDOW_STYLE[mode]} -Wait -PassThru; "
        "$p.ExitCode"
    )


def _parse_exit_code(raw: str) -> int | None:
    try:
        return int(raw.strip().splitlines()[-1])
    except (ValueError, IndexError):
        return None


class ExternalToolInvoker:
    def __init__(self, executor: CommandExecutor, console: Console, dry_run: bool = False):
        self.executor = executor
        self.console = console
        self.dry_run = dry_run

    # ── Disk Cleanup ──────────────────────────────────────────────────────────

    def run_disk_cleanup(self, categories, mode: DiskCleanupMode, stage: str = "disk_cleanup") -> StageResult:
        categories = list(categories)
        if self.dry_run:
            present = _parse_exit_code(
                self.executor.run_powershell(_mark_categories_script(categories, write=False))
            ) or 0
            return StageResult(
                stage=stage,
                items_affected=present,
                level="INFO",
                message=f"dry run: would select {present} categories and run cleanmgr /sagerun:{SAGESET_ID}",
            )

        marked = _parse_exit_code(self.executor.run_powershell(_mark_categories_script(categories)))
        self.console.detail(f"{stage}: {marked} of {len(categories)} categories present and selected")

        code = _parse_exit_code(self.executor.run_powershell(_cleanmgr_script(mode), timeout=None))
        if mode is DiskCleanupMode.UNATTENDED:
            ok = code in (0, None)
        else:
            ok = code == 0
        if not ok:
            return StageResult(
                stage=stage,
                items_affected=marked or 0,
                succeeded=False,
                level="ERROR",
                message=f"cleanmgr exited with code {code}",
            )
        return StageResult(
            stage=stage,
            items_affected=marked or 0,
            message=f"Disk Cleanup finished ({marked} categories)",
        )

    # ── Component store ───────────────────────────────────────────────────────

    def run_component_cleanup(self, mode: ComponentCleanupMode, stage: str = "component_store") -> StageResult:
        args = DISM_ARGS[mode]
        warnings = []
        if mode is ComponentCleanupMode.AGGRESSIVE:
            warnings.append(
                "update baseline reset, installed updates can no longer be uninstalled"
            )
        if self.dry_run:
            return StageResult(
                stage=stage,
                level="INFO",
                message=f"dry run: would run Dism.exe {' '.join(args)}",
                warnings=warnings,
            )

        self.console.detail(f"{stage}: running Dism.exe {' '.join(args)}")
        proc = self.executor.run_process("Dism.exe", args)
        self.console.detail(f"{stage}: DISM output:\n{proc.output}")
        if DISM_SUCCESS_TEXT.lower() in proc.output.lower():
            return StageResult(
                stage=stage,
                message=f"component store cleaned ({mode.value})",
                warnings=warnings,
            )
        last_line = proc.output.strip().splitlines()[-1] if proc.output.strip() else "no output"
        return StageResult(
            stage=stage,
            succeeded=False,
            level="ERROR",
            message=f"DISM did not report success (exit {proc.returncode}): {last_line}",
        )

    # ── WMI repository ────────────────────────────────────────────────────────

    def repair_repository(self, stage: str = "repair_repository") -> StageResult:
        if self.dry_run:
            return StageResult(stage=stage, level="INFO", message="dry run: would run winmgmt /salvagerepository")
        proc = self.executor.run_process("winmgmt.exe", ["/salvagerepository"])
        self.console.detail(f"{stage}: {proc.output or 'no output'}")
        return StageResult(stage=stage, message="WMI repository salvage completed")
