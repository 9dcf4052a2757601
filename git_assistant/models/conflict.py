"""Conflict region models used by the conflict resolver"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ResolutionStrategy(Enum):
    """How a single conflict region is rewritten."""
    OURS = "ours"          # keep the current branch side
    THEIRS = "theirs"      # keep the incoming side
    BOTH = "both"          # ours, then theirs
    MANUAL = "manual"      # leave markers for hand editing


@dataclass(frozen=True)
class ConflictRegion:
    """One conflict found in a document.

    ``start`` and ``end`` are a half-open character range over the original
    text, covering the start-marker line through the end-marker line (the
    end-marker's line break is not part of the region).
    """
    start: int
    end: int
    ours: str
    theirs: str
    ancestor: Optional[str] = None
    ours_label: str = ""
    theirs_label: str = ""
    line: int = 0  # 1-based line of the start marker


@dataclass
class ResolutionResult:
    """Text produced by a resolve pass and what happened to each region."""
    text: str
    regions: List[ConflictRegion] = field(default_factory=list)
    resolved: int = 0
    manual: int = 0

    @property
    def changed(self) -> bool:
        return self.resolved > 0

    @property
    def fully_resolved(self) -> bool:
        return self.manual == 0
