from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from honestfit.models import CandidateProfile, EvidenceLevel, FitDebug, FitLevel, FitResult, RequirementMatch

from .scoring import fit_level_for_score, tally_core

VERDICTS: Dict[FitLevel, str] = {
    FitLevel.STRONG: (
        "The candidate appears well-suited for this role and should be able to succeed "
        "with a normal onboarding period."
    ),
    FitLevel.MODERATE: (
        "The candidate could be a good hire if the team is open to some ramp-up in the areas "
        "marked as gaps or partial matches."
    ),
    FitLevel.WEAK: (
        "The candidate has relevant strengths but is missing several core requirements; "
        "they may be better suited for a different role."
    ),
}

NO_GAPS_NOTE = "No major gaps were identified beyond normal domain-specific ramp-up."


def build_strengths(requirements: Sequence[RequirementMatch]) -> List[str]:
    return [
        f"Matches: {r.text} ({r.evidence or 'see profile'})"
        for r in requirements
        if r.evidence_level in (EvidenceLevel.MATCH, EvidenceLevel.PARTIAL)
    ]


def build_gaps(requirements: Sequence[RequirementMatch]) -> List[str]:
    return [
        f"Job requires: {r.text} - profile shows no explicit evidence for this requirement."
        for r in requirements
        if r.is_core and r.evidence_level is EvidenceLevel.NONE
    ]


def compute_fit(
        requirements: Sequence[RequirementMatch],
        profile: CandidateProfile,
        *,
        debug: Optional[FitDebug] = None,
) -> FitResult:
    """
    Deterministic aggregation of corrected requirements into a FitResult.
    Pure: no LLM calls, no I/O; the same input always yields an equal result.
    """
    tally = tally_core(requirements)
    fit = fit_level_for_score(tally.score)

    strengths = build_strengths(requirements)
    gaps = build_gaps(requirements)

    summary = (
        f"Based on the mapped requirements for {profile.name}, the candidate matches "
        f"{tally.core_match}/{tally.core_total} core requirements and partially aligns with "
        f"{tally.core_partial}. Overall this yields a {fit.value} fit for the role."
    )

    verdict_parts = [VERDICTS[fit]]
    if not gaps:
        verdict_parts.append(NO_GAPS_NOTE)

    return FitResult(
        fit=fit,
        summary=summary,
        strengths=strengths,
        gaps=gaps,
        verdict=" ".join(verdict_parts),
        requirements=list(requirements),
        debug=debug,
    )
