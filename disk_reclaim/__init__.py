"""disk-reclaim: free disk space on Windows endpoints ahead of Microsoft 365 upgrades."""

__version__ = "1.0.0"
