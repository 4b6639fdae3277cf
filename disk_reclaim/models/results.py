"""Result records produced by reclamation components and stages."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ItemResult:
    path: str
    attempted: bool = True
    succeeded: bool = False
    skipped_reason: str | None = None


@dataclass
class StageResult:
    stage: str
    items_affected: int = 0
    succeeded: bool = True
    level: str = "SUCCESS"   # INFO | SUCCESS | WARNING | ERROR
    message: str = ""
    items: list[ItemResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def removed(self) -> int:
        return sum(1 for i in self.items if i.succeeded)

    @property
    def skipped(self) -> list[ItemResult]:
        return [i for i in self.items if i.skipped_reason]

    def merge(self, other: "StageResult") -> None:
        """Fold a sub-result (one pattern, one directory) into this one."""
        self.items_affected += other.items_affected
        self.items.extend(other.items)
        self.warnings.extend(other.warnings)
        if not other.succeeded:
            self.succeeded = False

    @classmethod
    def failed(cls, stage: str, message: str) -> "StageResult":
        return cls(stage=stage, succeeded=False, level="ERROR", message=message)
