"""Default path catalogs and Disk Cleanup categories.

Patterns use %SystemDrive%, %SystemRoot%, %ProgramData% and %ProgramFiles%
tokens. They are expanded against the execution target (local or remote) at
stage run time, not against the environment of the machine running the tool.
A `*` segment under ``Users`` matches every user profile.
"""

from __future__ import annotations

_USERS = "%SystemDrive%\\Users\\*"

TEMP_FILES: list[str] = [
    "%SystemRoot%\\Temp\\*",
    f"{_USERS}\\AppData\\Local\\Temp\\*",
    "%SystemRoot%\\ServiceProfiles\\LocalService\\AppData\\Local\\Temp\\*",
    "%SystemRoot%\\ServiceProfiles\\NetworkService\\AppData\\Local\\Temp\\*",
    "%SystemRoot%\\Prefetch\\*.pf",
    "%ProgramData%\\Microsoft\\Windows\\WER\\ReportArchive\\*",
    "%ProgramData%\\Microsoft\\Windows\\WER\\ReportQueue\\*",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Windows\\WER\\*",
    f"{_USERS}\\AppData\\Local\\CrashDumps\\*",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Windows\\Explorer\\thumbcache_*.db",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Windows\\Explorer\\iconcache_*.db",
]

# Held open by the Windows Update service (wuauserv).
UPDATE_CACHE: list[str] = [
    "%SystemRoot%\\SoftwareDistribution\\Download\\*",
    "%SystemRoot%\\SoftwareDistribution\\DeliveryOptimization\\*",
]

_CHROMIUM_ROOTS = [
    "Google\\Chrome",
    "Microsoft\\Edge",
    "BraveSoftware\\Brave-Browser",
]
_CHROMIUM_CACHES = ["Cache", "Code Cache", "GPUCache", "Service Worker\\CacheStorage"]

BROWSER_CACHE: list[str] = [
    f"{_USERS}\\AppData\\Local\\{root}\\User Data\\*\\{cache}\\*"
    for root in _CHROMIUM_ROOTS
    for cache in _CHROMIUM_CACHES
] + [
    f"{_USERS}\\AppData\\Local\\Mozilla\\Firefox\\Profiles\\*\\cache2\\*",
    f"{_USERS}\\AppData\\Local\\Mozilla\\Firefox\\Profiles\\*\\startupCache\\*",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Windows\\INetCache\\*",
    f"{_USERS}\\AppData\\Roaming\\Microsoft\\Teams\\Cache\\*",
]

# Held open by the Click-to-Run service (ClickToRunSvc).
OFFICE_INSTALLER_CACHE: list[str] = [
    "%ProgramFiles%\\Microsoft Office\\Updates\\Download\\*",
    "%ProgramFiles%\\Microsoft Office\\Updates\\Apply\\*",
    "%ProgramFiles%\\Common Files\\microsoft shared\\ClickToRun\\Updates\\*",
]

# Per-user Office caches; not owned by any service.
OFFICE_USER_CACHE: list[str] = [
    f"{_USERS}\\AppData\\Local\\Microsoft\\Office\\16.0\\OfficeFileCache\\*",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Office\\16.0\\Wef\\*",
    f"{_USERS}\\AppData\\Local\\Microsoft\\Office\\OTele\\*",
]

# directory / filename glob / active file that must survive
SYSTEM_LOGS: list[dict] = [
    {"directory": "%SystemRoot%\\Logs\\CBS",           "pattern": "*.log", "exclude": "CBS.log"},
    {"directory": "%SystemRoot%\\Logs\\CBS",           "pattern": "*.cab", "exclude": None},
    {"directory": "%SystemRoot%\\Logs\\DISM",          "pattern": "*.log", "exclude": "dism.log"},
    {"directory": "%SystemRoot%\\Logs\\WindowsUpdate", "pattern": "*.etl", "exclude": None},
    {"directory": "%SystemRoot%\\Panther",             "pattern": "*.log", "exclude": "setupact.log"},
    {"directory": "%SystemRoot%\\Logs\\MeasuredBoot",  "pattern": "*.log", "exclude": None},
]

# VolumeCaches handlers selected for cleanmgr /sagerun. "Recycle Bin" is left
# out: the recycle_bin stage applies its own retention threshold.
DISK_CLEANUP_CATEGORIES: list[str] = [
    "Active Setup Temp Folders",
    "BranchCache",
    "Content Indexer Cleaner",
    "D3D Shader Cache",
    "Delivery Optimization Files",
    "Device Driver Packages",
    "Diagnostic Data Viewer database files",
    "Downloaded Program Files",
    "Internet Cache Files",
    "Language Pack",
    "Offline Pages Files",
    "Old ChkDsk Files",
    "Previous Installations",
    "RetailDemo Offline Content",
    "Service Pack Cleanup",
    "Setup Log Files",
    "System error memory dump files",
    "System error minidump files",
    "Temporary Files",
    "Temporary Setup Files",
    "Thumbnail Cache",
    "Update Cleanup",
    "Upgrade Discarded Files",
    "User file versions",
    "Windows Defender",
    "Windows Error Reporting Files",
    "Windows ESD installation files",
    "Windows Upgrade Log Files",
]
