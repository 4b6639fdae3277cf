"""Clean up paths owned by a Windows service, stopping it around the work."""

from __future__ import annotations

import time
from typing import Callable, Iterable

from ..console import Console
from ..errors import CommandError
from ..executors import _utils
from ..executors.base import CommandExecutor
from ..models.results import StageResult
from .paths import PathReclaimer


class ServiceGuardedCleanup:
    """Stop ``service``, reclaim its paths, then start it again.

    A service that is not installed is not an error: the paths are cleaned
    directly. The service is restarted only if it was running before, and a
    failed restart is reported as a warning rather than failing the stage.
    In dry-run mode the state is queried but the service is never touched.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        console: Console,
        reclaimer: PathReclaimer,
        dry_run: bool = False,
        stop_wait: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.console = console
        self.reclaimer = reclaimer
        self.dry_run = dry_run
        self.stop_wait = stop_wait
        self._sleep = sleep

    def query(self, service: str) -> str | None:
        """Return the service status (``Running``, ``Stopped``...) or None if absent."""
        raw = self.executor.run_powershell(
            f"$s = Get-Service -Name {_utils.ps_quote(service)} -ErrorAction SilentlyContinue; "
            "if ($s) { $s.Status.ToString() }"
        )
        return raw.strip() or None

    def _stop(self, service: str) -> str | None:
        """Stop the service; return a warning on failure."""
        try:
            self.executor.run_powershell(
                f"Stop-Service -Name {_utils.ps_quote(service)} -Force -ErrorAction Stop"
            )
        except CommandError as exc:
            self.console.detail(f"could not stop {service}: {exc}")
            return f"could not stop {service}, cleaned while running"
        self.console.detail(f"{service} stopped; waiting {self.stop_wait:g}s for handles to close")
        self._sleep(self.stop_wait)
        return None

    def _start(self, service: str) -> str | None:
        try:
            self.executor.run_powershell(
                f"Start-Service -Name {_utils.ps_quote(service)} -ErrorAction Stop"
            )
        except CommandError as exc:
            self.console.detail(f"could not restart {service}: {exc}")
            return f"could not restart {service}"
        self.console.detail(f"{service} started")
        return None

    def run(self, service: str, patterns: Iterable[str], stage: str) -> StageResult:
        status = self.query(service)
        if status is None:
            self.console.detail(f"{stage}: {service} is not installed; cleaning its paths directly")

        warnings = []
        stopped = False
        if status == "Running" and not self.dry_run:
            failure = self._stop(service)
            if failure:
                warnings.append(failure)
            stopped = failure is None
        elif status == "Running":
            self.console.detail(f"dry run: would stop {service} around {stage}")

        try:
            result = self.reclaimer.reclaim_all(
                [self.executor.resolve(p) for p in patterns], stage
            )
        finally:
            if stopped:
                failure = self._start(service)
                if failure:
                    warnings.append(failure)
        result.warnings.extend(warnings)
        return result
