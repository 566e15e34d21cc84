from __future__ import annotations

from typing import Sequence

from honestfit.models import EvidenceLevel, FitLevel, RequirementMatch

from .types import CoreTally

STRONG_THRESHOLD = 0.75
MODERATE_THRESHOLD = 0.45
PARTIAL_WEIGHT = 0.5


def tally_core(requirements: Sequence[RequirementMatch]) -> CoreTally:
    """
    score = (core matches + 0.5 * core partials) / core total
    Nice-to-have requirements never affect the score.
    """
    core = [r for r in requirements if r.is_core]
    core_match = sum(1 for r in core if r.evidence_level is EvidenceLevel.MATCH)
    core_partial = sum(1 for r in core if r.evidence_level is EvidenceLevel.PARTIAL)
    core_total = len(core) or 1
    score = (core_match + PARTIAL_WEIGHT * core_partial) / core_total
    return CoreTally(core_match=core_match, core_partial=core_partial, core_total=core_total, score=score)


def fit_level_for_score(score: float) -> FitLevel:
    # Lower bounds are inclusive.
    if score >= STRONG_THRESHOLD:
        return FitLevel.STRONG
    if score >= MODERATE_THRESHOLD:
        return FitLevel.MODERATE
    return FitLevel.WEAK
