from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CoreTally:
    core_match: int
    core_partial: int
    core_total: int  # never 0: an empty core list counts as 1
    score: float
