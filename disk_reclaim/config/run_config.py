"""Run configuration loader for disk-reclaim.

Resolution order for the optional YAML file (first match wins):
  1. --config <path> CLI flag (explicit_path argument)
  2. DISK_RECLAIM_CONFIG environment variable
  3. Local system fallback:
       Windows: %PROGRAMDATA%\\disk-reclaim\\config.yaml
       other:   /etc/disk-reclaim/config.yaml

The file is deep-merged over ``_DEFAULTS`` and the CLI overrides are merged
over the result, so a flag given on the command line always wins.

Placeholder expansion:
  String values may contain %VARNAME% tokens, expanded from the environment
  of the machine running the tool. The ``paths`` section is left alone: its
  %SystemDrive% / %SystemRoot% tokens belong to the target machine and are
  expanded by the executor.
"""

from __future__ import annotations

import copy
import os
import re
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigError
from ..models.schema import ComponentCleanupMode, DiskCleanupMode
from . import catalog

_CONFIG_ENV = "DISK_RECLAIM_CONFIG"

STAGE_NAMES: tuple[str, ...] = (
    "temp_files",
    "disk_cleanup",
    "component_store",
    "recycle_bin",
    "update_cache",
    "browser_cache",
    "system_logs",
    "office_cache",
)

_DEFAULTS: dict[str, Any] = {
    "target": {
        "computer":        None,
        "local":           False,
        "credential_user": None,
    },
    "output": {
        "verbose": False,
        "silent":  False,
        "log_dir": "%PROGRAMDATA%\\disk-reclaim\\logs",
    },
    "skip": {name: False for name in STAGE_NAMES},
    "retention": {
        "recycle_bin_days": 3,
        "log_days":         30,
    },
    "drive":   None,   # None = target's system drive
    "dry_run": False,
    "repair_wmi": False,
    "component_store": {"mode": "conservative"},
    "disk_cleanup": {
        "mode":       "unattended",
        "categories": list(catalog.DISK_CLEANUP_CATEGORIES),
    },
    "services": {"stop_wait_seconds": 5.0},
    "paths": {
        "temp_files":       list(catalog.TEMP_FILES),
        "update_cache":     list(catalog.UPDATE_CACHE),
        "browser_cache":    list(catalog.BROWSER_CACHE),
        "office_installer": list(catalog.OFFICE_INSTALLER_CACHE),
        "office_user":      list(catalog.OFFICE_USER_CACHE),
        "system_logs":      [dict(rule) for rule in catalog.SYSTEM_LOGS],
    },
}


# ── validated model ───────────────────────────────────────────────────────────

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TargetSettings(_Frozen):
    computer: Optional[str] = None
    local: bool = False
    credential_user: Optional[str] = None


class OutputSettings(_Frozen):
    verbose: bool = False
    silent: bool = False
    log_dir: str


class SkipFlags(_Frozen):
    temp_files: bool = False
    disk_cleanup: bool = False
    component_store: bool = False
    recycle_bin: bool = False
    update_cache: bool = False
    browser_cache: bool = False
    system_logs: bool = False
    office_cache: bool = False


class RetentionSettings(_Frozen):
    recycle_bin_days: int = Field(3, ge=0, le=365)
    log_days: int = Field(30, ge=1, le=365)


class ComponentStoreSettings(_Frozen):
    mode: ComponentCleanupMode = ComponentCleanupMode.CONSERVATIVE


class DiskCleanupSettings(_Frozen):
    mode: DiskCleanupMode = DiskCleanupMode.UNATTENDED
    categories: tuple[str, ...] = ()


class ServiceSettings(_Frozen):
    stop_wait_seconds: float = Field(5.0, ge=0)


class LogRule(_Frozen):
    directory: str
    pattern: str = "*.log"
    exclude: Optional[str] = None


class PathCatalog(_Frozen):
    temp_files: tuple[str, ...] = ()
    update_cache: tuple[str, ...] = ()
    browser_cache: tuple[str, ...] = ()
    office_installer: tuple[str, ...] = ()
    office_user: tuple[str, ...] = ()
    system_logs: tuple[LogRule, ...] = ()


class CleanupConfig(_Frozen):
    target: TargetSettings
    output: OutputSettings
    skip: SkipFlags
    retention: RetentionSettings
    drive: Optional[str] = None
    dry_run: bool = False
    repair_wmi: bool = False
    component_store: ComponentStoreSettings
    disk_cleanup: DiskCleanupSettings
    services: ServiceSettings
    paths: PathCatalog

    @field_validator("drive")
    @classmethod
    def _check_drive(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not re.fullmatch(r"[A-Za-z]:", value):
            raise ValueError(f"drive must be a letter followed by a colon, got {value!r}")
        return value.upper()

    def is_enabled(self, stage: str) -> bool:
        return not getattr(self.skip, stage)


# ── path helpers ──────────────────────────────────────────────────────────────

def _local_config_path() -> Path:
    if sys.platform == "win32":
        base = os.environ.get("PROGRAMDATA", r"C:\ProgramData")
        return Path(base) / "disk-reclaim" / "config.yaml"
    return Path("/etc/disk-reclaim/config.yaml")


# ── YAML loading ──────────────────────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return its top-level mapping."""
    import yaml
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(data).__name__}: {path}")
    return data


# ── merging and expansion ─────────────────────────────────────────────────────

def _deep_merge(base: dict, override: dict) -> dict:
    """Return a new dict with override merged recursively into base."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


_PLACEHOLDER_RE = re.compile(r"%([A-Za-z0-9_]+)%")


def _build_expansion_map() -> dict[str, str]:
    mapping: dict[str, str] = dict(os.environ)
    mapping.setdefault("PROGRAMDATA", r"C:\ProgramData")
    if "COMPUTERNAME" not in mapping:
        import socket
        mapping["COMPUTERNAME"] = socket.gethostname().split(".")[0].upper()
    return mapping


def _expand_placeholder(value: str, _map: dict[str, str]) -> str:
    """Expand %VARNAME% tokens; unknown tokens are left unchanged."""
    return _PLACEHOLDER_RE.sub(lambda m: _map.get(m.group(1), m.group(0)), value)


def _expand_strings(obj: Any, _map: dict[str, str], skip: tuple[str, ...] = ()) -> None:
    """Recursively expand placeholders in all string values (in-place)."""
    if isinstance(obj, dict):
        for key, val in obj.items():
            if key in skip:
                continue
            if isinstance(val, str):
                obj[key] = _expand_placeholder(val, _map)
            else:
                _expand_strings(val, _map)
    elif isinstance(obj, list):
        for i, val in enumerate(obj):
            if isinstance(val, str):
                obj[i] = _expand_placeholder(val, _map)
            else:
                _expand_strings(val, _map)


def _read_file_config(explicit_path: str | None, notices: list[str]) -> dict:
    if explicit_path is not None:
        p = Path(explicit_path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {p}")
        return _load_yaml(p)

    env_path_str = os.environ.get(_CONFIG_ENV)
    if env_path_str:
        env_p = Path(env_path_str)
        if env_p.exists():
            return _load_yaml(env_p)
        notices.append(f"{_CONFIG_ENV} points to missing file: {env_p}")

    local = _local_config_path()
    if local.exists():
        return _load_yaml(local)
    return {}


# ── public API ────────────────────────────────────────────────────────────────

def load_config(
    explicit_path: str | None = None,
    overrides: dict | None = None,
    notices: list[str] | None = None,
) -> CleanupConfig:
    """Load, merge, expand, and validate the run configuration.

    Args:
        explicit_path: Path passed via ``--config``. When provided it is used
            exclusively and a missing file is an error.
        overrides: Nested mapping built from CLI flags; merged last.
        notices: Receives warnings found while locating the file, for the
            caller to report once its transcript is open.

    Raises:
        ConfigError: Missing explicit file, malformed YAML mapping, or a
            value outside its allowed range.
    """
    raw = _read_file_config(explicit_path, notices if notices is not None else [])
    merged = _deep_merge(copy.deepcopy(_DEFAULTS), raw)
    if overrides:
        merged = _deep_merge(merged, overrides)

    _expand_strings(merged, _build_expansion_map(), skip=("paths",))

    try:
        return CleanupConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
