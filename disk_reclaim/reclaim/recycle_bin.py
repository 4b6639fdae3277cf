"""Permanently delete Recycle Bin entries older than a retention threshold."""

from __future__ import annotations

import datetime
import json
import ntpath
import re

from ..console import Console
from ..errors import CommandError
from ..executors.base import CommandExecutor
from ..models.results import ItemResult, StageResult
from .paths import remove_entry

# Column 2 of the Recycle Bin shell folder is "Date deleted", formatted for the
# target's culture. It is parsed there with that culture and sent back as ISO
# 8601 in `Deleted`; `DateDeleted` keeps the display text. Every COM object is
# released and a collection forced so repeated runs do not leak handles.
_ENUMERATE_PS = r"""
$shell = $null; $bin = $null; $items = $null
try {
    $shell = New-Object -ComObject Shell.Application
    $bin = $shell.Namespace(0xA)
    if ($null -eq $bin) { throw 'Recycle Bin namespace could not be opened' }
    $items = $bin.Items()
    $culture = Get-Culture
    $rows = @(foreach ($item in $items) {
        $text = [string]$bin.GetDetailsOf($item, 2) -replace '[\u200e\u200f\u202a-\u202e]', ''
        $when = [datetime]::MinValue
        $deleted = $null
        if ([datetime]::TryParse($text, $culture, [System.Globalization.DateTimeStyles]::AssumeLocal, [ref]$when)) {
            $deleted = $when.ToString('o')
        }
        [pscustomobject]@{
            Name        = $item.Name
            Path        = $item.Path
            DateDeleted = $text
            Deleted     = $deleted
        }
        [void][System.Runtime.InteropServices.Marshal]::ReleaseComObject($item)
    })
    ConvertTo-Json -InputObject $rows -Compress
} finally {
    foreach ($com in @($items, $bin, $shell)) {
        if ($null -ne $com) {
            [void][System.Runtime.InteropServices.Marshal]::ReleaseComObject($com)
        }
    }
    [System.GC]::Collect()
    [System.GC]::WaitForPendingFinalizers()
}
"""

# LRM, RLM and the embedding/override marks Explorer wraps dates in.
_BIDI_RE = re.compile("[\u200e\u200f\u202a-\u202e]")
_JSON_DATE_RE = re.compile(r"/Date\((-?\d+)\)/")


def parse_deleted_date(raw: str | None) -> datetime.datetime | None:
    """Parse an ISO 8601 or ``/Date(ms)/`` deletion date; None otherwise.

    Locale display text such as ``04/11/2026 10:00`` is deliberately not
    guessed at: day and month order depends on the target's culture.
    """
    if not raw:
        return None
    text = _BIDI_RE.sub("", raw).strip()
    if not text:
        return None

    m = _JSON_DATE_RE.fullmatch(text)
    if m:
        return datetime.datetime.fromtimestamp(int(m.group(1)) / 1000)

    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        return None


def age_in_days(deleted: datetime.datetime, now: datetime.datetime) -> int:
    """Whole days elapsed since deletion."""
    if deleted.tzinfo is not None:
        deleted = deleted.astimezone().replace(tzinfo=None)
    return (now - deleted).days


def _loads_array(ps_output: str) -> list:
    data = json.loads(ps_output or "[]")
    return data if isinstance(data, list) else [data]


class RecycleBinReclaimer:
    def __init__(self, executor: CommandExecutor, console: Console, dry_run: bool = False):
        self.executor = executor
        self.console = console
        self.dry_run = dry_run

    def list_entries(self) -> list[dict]:
        """Return ``{Name, Path, DateDeleted, Deleted}`` rows from the shell namespace.

        Raises CommandError when the namespace cannot be opened.
        """
        raw = self.executor.run_powershell(_ENUMERATE_PS, timeout=300)
        try:
            return _loads_array(raw)
        except ValueError as exc:
            raise CommandError(f"unexpected Recycle Bin listing: {exc}") from exc

    def reclaim(
        self,
        retention_days: int,
        stage: str = "recycle_bin",
        now: datetime.datetime | None = None,
    ) -> StageResult:
        now = now or datetime.datetime.now()
        try:
            entries = self.list_entries()
        except CommandError as exc:
            return StageResult.failed(stage, f"Recycle Bin could not be opened: {exc}")

        result = StageResult(stage=stage)
        for entry in entries:
            name = entry.get("Name") or entry.get("Path") or "?"
            deleted = parse_deleted_date(entry.get("Deleted") or entry.get("DateDeleted"))
            if deleted is None:
                self.console.detail(f"{stage}: unreadable date for {name!r}: {entry.get('DateDeleted')!r}")
                result.items.append(ItemResult(
                    path=entry.get("Path") or name,
                    attempted=False,
                    skipped_reason="unparseable deletion date",
                ))
                continue

            age = age_in_days(deleted, now)
            if age < retention_days:
                continue

            result.items_affected += 1
            path = entry.get("Path")
            if self.dry_run:
                self.console.detail(f"{stage}: would purge {name} ({age} days)")
                result.items.append(ItemResult(path=path or name, attempted=False, skipped_reason="dry-run"))
                continue
            if not path:
                result.items.append(ItemResult(path=name, skipped_reason="no backing path"))
                continue

            reason = self._purge(path)
            if reason:
                self.console.detail(f"{stage}: skipped {name} ({reason})")
            result.items.append(ItemResult(path=path, succeeded=reason is None, skipped_reason=reason))

        return result

    def _purge(self, path: str) -> str | None:
        """Delete the ``$R`` payload and its ``$I`` metadata sibling."""
        reason = remove_entry(self.executor.to_local_path(path))
        leaf = ntpath.basename(path)
        if reason is None and leaf.upper().startswith("$R"):
            info = path[: len(path) - len(leaf)] + "$I" + leaf[2:]
            leftover = remove_entry(self.executor.to_local_path(info))
            if leftover:
                self.console.detail(f"recycle_bin: metadata {info} kept ({leftover})")
        return reason
