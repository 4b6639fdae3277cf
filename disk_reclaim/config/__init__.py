from .run_config import STAGE_NAMES, CleanupConfig, LogRule, load_config

__all__ = ["STAGE_NAMES", "CleanupConfig", "LogRule", "load_config"]
