"""Best-effort deletion of everything matching a set of glob patterns."""

from __future__ import annotations

import glob
import os
import shutil
import stat
import sys

from ..console import Console
from ..models.results import ItemResult, StageResult


def describe_error(exc: OSError) -> str:
    if isinstance(exc, PermissionError):
        kind = "in use or access denied"
    elif getattr(exc, "winerror", None) == 206 or exc.errno == 36:
        kind = "path too long"
    else:
        kind = type(exc).__name__
    return f"{kind}: {exc.strerror or exc}"


def remove_file(path: str) -> None:
    try:
        os.unlink(path)
    except PermissionError:
        # Read-only attribute blocks DeleteFile on Windows.
        os.chmod(path, stat.S_IWRITE)
        os.unlink(path)


def _remove_tree(path: str) -> list[str]:
    """rmtree that keeps going past failures; returns the failure reasons."""
    errors: list[str] = []

    def _retry(func, target, exc):
        try:
            os.chmod(target, stat.S_IWRITE)
            func(target)
        except OSError as again:
            errors.append(f"{target}: {describe_error(again)}")

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_retry)
    else:
        shutil.rmtree(path, onerror=lambda func, target, info: _retry(func, target, info[1]))
    return errors


def _sweep(path: str) -> list[str]:
    """Bottom-up pass removing whatever survived a partially failed rmtree."""
    errors: list[str] = []
    for root, dirs, files in os.walk(path, topdown=False):
        for name in files:
            try:
                remove_file(os.path.join(root, name))
            except FileNotFoundError:
                continue
            except OSError as exc:
                errors.append(f"{os.path.join(root, name)}: {describe_error(exc)}")
        for name in dirs:
            try:
                os.rmdir(os.path.join(root, name))
            except FileNotFoundError:
                continue
            except OSError:
                pass  # still holds a locked descendant; reported via the file above
    try:
        os.rmdir(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        if not errors:
            errors.append(f"{path}: {describe_error(exc)}")
    return errors


def remove_entry(path: str) -> str | None:
    """Delete a file or directory tree. Returns None on success, else a reason."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            errors = _remove_tree(path)
        else:
            remove_file(path)
            errors = []
    except FileNotFoundError:
        return None
    except OSError as exc:
        return describe_error(exc)
    if not os.path.lexists(path):
        return None
    return errors[0] if errors else "still present after delete"


def expand(pattern: str) -> list[str]:
    """Enumerate current matches, deepest first."""
    matches = glob.glob(pattern, include_hidden=True)
    return sorted(matches, key=lambda p: (-p.count(os.sep), p))


class PathReclaimer:
    """Delete every entry matching a glob pattern, tolerating per-entry failures.

    Patterns must already be reachable from this process (see
    ``CommandExecutor.resolve``). Enumeration is done fresh on every call.
    In dry-run mode matches are enumerated and counted but left in place, so
    ``items_affected`` is the same as a real pass would report.
    """

    def __init__(self, console: Console, dry_run: bool = False):
        self.console = console
        self.dry_run = dry_run

    def reclaim(self, pattern: str, stage: str = "paths") -> StageResult:
        result = StageResult(stage=stage)
        matches = expand(pattern)
        result.items_affected = len(matches)
        if not matches:
            self.console.detail(f"{stage}: no matches for {pattern}")
            return result

        for path in matches:
            if self.dry_run:
                self.console.detail(f"{stage}: would remove {path}")
                result.items.append(
                    ItemResult(path=path, attempted=False, skipped_reason="dry-run")
                )
                continue
            reason = remove_entry(path)
            result.items.append(ItemResult(path=path, succeeded=reason is None, skipped_reason=reason))

        if not self.dry_run:
            self._second_pass(result, stage)
        return result

    def reclaim_all(self, patterns, stage: str) -> StageResult:
        result = StageResult(stage=stage)
        for pattern in patterns:
            result.merge(self.reclaim(pattern, stage))
        return result

    def _second_pass(self, result: StageResult, stage: str) -> None:
        for item in result.items:
            if item.succeeded:
                continue
            if os.path.isdir(item.path):
                errors = _sweep(item.path)
                if not os.path.lexists(item.path):
                    item.succeeded, item.skipped_reason = True, None
                    continue
                if errors:
                    item.skipped_reason = errors[0]
            self.console.detail(f"{stage}: skipped {item.path} ({item.skipped_reason})")
