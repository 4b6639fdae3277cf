"""Command-line interface and orchestration for disk-reclaim."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

from . import __version__
from .config import CleanupConfig, load_config
from .console import Console
from .errors import ConfigError, FreeSpaceError, RemotingUnavailableError
from .executors import _utils, build_executor, establish_remoting, resolve_target
from .models.results import StageResult
from .models.schema import ExecutionTarget, ProbeStage
from .reclaim.free_space import FreeSpaceProbe, recovered_gb
from .stages import StageContext, build_stages

EXIT_OK = 0
EXIT_PRECONDITION = 1
EXIT_INTERRUPTED = 130

# flag dest -> skip section key
_SKIP_FLAGS = {
    "skip_temp":          "temp_files",
    "skip_disk_cleanup":  "disk_cleanup",
    "skip_dism":          "component_store",
    "skip_recycle_bin":   "recycle_bin",
    "skip_update_cache":  "update_cache",
    "skip_browser_cache": "browser_cache",
    "skip_system_logs":   "system_logs",
    "skip_office_cache":  "office_cache",
}


# ── argument parsing ──────────────────────────────────────────────────────────

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="disk-reclaim",
        description="Reclaim disk space on a local or remote Windows computer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  disk-reclaim --local --dry-run --verbose\n"
            "  disk-reclaim --computer PC042 --skip-browser-cache\n"
            "  disk-reclaim --computer PC042 --credential-user CORP\\admin --aggressive\n"
            "  disk-reclaim --local --recycle-bin-days 0 --log-retention-days 7\n"
            "\n"
            "--aggressive runs DISM /StartComponentCleanup /ResetBase: updates\n"
            "installed before the run can no longer be uninstalled.\n"
        ),
    )

    target = parser.add_argument_group("target").add_mutually_exclusive_group()
    target.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="Clean this computer",
    )
    target.add_argument(
        "--computer",
        metavar="NAME",
        help="Clean NAME over PowerShell remoting (prompted for if neither option is given)",
    )
    parser.add_argument(
        "--credential-user",
        metavar="USER",
        help="Connect to the remote computer as USER (password is prompted once)",
    )

    behavior = parser.add_argument_group("behavior")
    behavior.add_argument("--verbose", action="store_true", default=None,
                          help="Show item-level detail on the console")
    behavior.add_argument("--silent", action="store_true", default=None,
                          help="Write nothing to the console; the transcript is still written")
    behavior.add_argument("--dry-run", action="store_true", default=None,
                          help="Enumerate and report only; delete nothing, touch no service")
    behavior.add_argument("--aggressive", action="store_true", default=None,
                          help="DISM /StartComponentCleanup /ResetBase (irreversible)")
    behavior.add_argument("--visible-cleanmgr", action="store_true", default=None,
                          help="Show the Disk Cleanup window instead of running it hidden")
    behavior.add_argument("--repair-wmi", action="store_true", default=None,
                          help="Also run winmgmt /salvagerepository at the end")
    behavior.add_argument("--config", metavar="PATH",
                          help="YAML configuration file")
    behavior.add_argument("--log-dir", metavar="PATH",
                          help="Transcript directory (default: %%PROGRAMDATA%%\\disk-reclaim\\logs)")

    skip = parser.add_argument_group("stages")
    for dest in _SKIP_FLAGS:
        flag = "--" + dest.replace("_", "-")
        skip.add_argument(flag, dest=dest, action="store_true", default=None,
                          help=f"Skip the {_SKIP_FLAGS[dest].replace('_', ' ')} stage")

    numbers = parser.add_argument_group("retention")
    numbers.add_argument("--recycle-bin-days", type=int, metavar="N",
                         help="Purge Recycle Bin entries deleted N or more days ago (0-365, default 3)")
    numbers.add_argument("--log-retention-days", type=int, metavar="N",
                         help="Delete logs older than N days (1-365, default 30)")
    numbers.add_argument("--drive", metavar="X:",
                         help="Volume to measure (default: the target's system drive)")

    parser.add_argument(
        "--version",
        action="version",
        version=f"disk-reclaim {__version__}",
    )
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict:
    """Nested config mapping holding only the flags actually given."""
    candidates = {
        "target": {
            "computer":        args.computer,
            "local":           args.local,
            "credential_user": args.credential_user,
        },
        "output": {
            "verbose": args.verbose,
            "silent":  args.silent,
            "log_dir": args.log_dir,
        },
        "skip": {key: getattr(args, dest) for dest, key in _SKIP_FLAGS.items()},
        "retention": {
            "recycle_bin_days": args.recycle_bin_days,
            "log_days":         args.log_retention_days,
        },
        "drive":      args.drive,
        "dry_run":    args.dry_run,
        "repair_wmi": args.repair_wmi,
        "component_store": {"mode": "aggressive" if args.aggressive else None},
        "disk_cleanup":    {"mode": "visible" if args.visible_cleanmgr else None},
    }

    def _prune(mapping: dict) -> dict:
        out = {}
        for key, val in mapping.items():
            if isinstance(val, dict):
                val = _prune(val)
                if val:
                    out[key] = val
            elif val is not None:
                out[key] = val
        return out

    return _prune(candidates)


# ── orchestration ─────────────────────────────────────────────────────────────

def _summarize_stages(console: Console, results: list[StageResult]) -> None:
    failed = [r.stage for r in results if not r.succeeded]
    if failed:
        console.warning(f"Stages with errors: {', '.join(failed)}")


def _execute(config: CleanupConfig, target: ExecutionTarget, secret: str | None, console: Console) -> int:
    mode = " (dry run)" if config.dry_run else ""
    console.banner(f"Cleaning {target.host}{mode}")
    if not target.is_remote and not _utils.is_admin():
        console.warning("Not running as administrator; many items will be skipped")

    executor = build_executor(target, secret=secret)
    try:
        establish_remoting(executor)
    except RemotingUnavailableError as exc:
        console.error(str(exc))
        return EXIT_PRECONDITION

    drive = config.drive or target.system_drive
    probe = FreeSpaceProbe(executor)
    try:
        initial = probe.sample(drive, ProbeStage.INITIAL)
    except FreeSpaceError as exc:
        console.error(str(exc))
        return EXIT_PRECONDITION
    console.info(f"Free space on {drive} before cleanup: {initial.free_gb} GB")

    ctx = StageContext(executor=executor, config=config, console=console)
    results = [stage.run() for stage in build_stages(ctx)]
    _summarize_stages(console, results)

    try:
        final = probe.sample(drive, ProbeStage.FINAL)
    except FreeSpaceError as exc:
        console.warning(f"Free space after cleanup unknown: {exc}")
    else:
        console.success(
            f"Recovered {recovered_gb(initial, final)} GB on {drive} "
            f"({initial.free_gb} GB -> {final.free_gb} GB)"
        )

    console.banner(f"Done. Transcript: {console.transcript}")
    return EXIT_OK


# ── main entry point ──────────────────────────────────────────────────────────

def run(argv=None) -> int:
    args = parse_args(argv)

    notices: list[str] = []
    try:
        config = load_config(args.config, _overrides(args), notices)
    except ConfigError as exc:
        print(f"[disk-reclaim] Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_PRECONDITION

    console = Console(verbose=config.output.verbose, silent=config.output.silent)
    try:
        target = resolve_target(
            config.target.computer,
            config.target.local,
            credential_user=config.target.credential_user,
        )
        secret = None
        if target.is_remote and target.credential_user:
            secret = getpass.getpass(f"Password for {target.credential_user}: ")

        with console:
            console.open(Path(config.output.log_dir), target.host)
            for notice in notices:
                console.warning(notice)
            return _execute(config, target, secret, console)
    except KeyboardInterrupt:
        print("\n[disk-reclaim] Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED


def main() -> None:
    sys.exit(run())
