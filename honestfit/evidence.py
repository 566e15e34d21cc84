"""
honestfit/evidence.py

Literal-evidence rule applied after the LLM classifies requirements.

The LLM tends to infer transferable skills (e.g. Angular from React). For named
technologies and hard constraints (clearances, citizenship, degrees,
certifications) a claimed match only stands when every such term in the
requirement appears verbatim in the profile text. The rule only ever
downgrades to "none"; it never upgrades.
"""
from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from honestfit.models import CandidateProfile, EvidenceLevel, RequirementMatch

TECH_TERMS: Tuple[str, ...] = (
    "java",
    "spring boot",
    "kubernetes",
    "go",
    "golang",
    "python",
    "react",
    "angular",
    "node.js",
    "nodejs",
    "php",
)

HARD_CONSTRAINT_TERMS: Tuple[str, ...] = (
    "top secret clearance",
    "ts/sci",
    "secret clearance",
    "security clearance",
    "us citizenship",
    "u.s. citizenship",
    "active clearance",
    "bachelor's degree",
    "bachelors degree",
    "master's degree",
    "masters degree",
    "certification required",
    "required certification",
)


@dataclass(frozen=True)
class LiteralEvidenceRules:
    tech_terms: Tuple[str, ...] = TECH_TERMS
    hard_constraint_terms: Tuple[str, ...] = HARD_CONSTRAINT_TERMS


DEFAULT_EVIDENCE_RULES = LiteralEvidenceRules()


def profile_search_text(profile: CandidateProfile) -> str:
    """The whole profile as one lowercased string (JSON dump) for literal lookups."""
    return json.dumps(profile.to_dict(), ensure_ascii=False).lower()


def _terms_in(text: str, terms: Sequence[str]) -> List[str]:
    lowered = text.lower()
    return [t for t in terms if t.lower() in lowered]


def enforce_literal_evidence(
        requirement_text: str,
        profile_text: str,
        llm_level: EvidenceLevel,
        rules: LiteralEvidenceRules = DEFAULT_EVIDENCE_RULES,
) -> EvidenceLevel:
    if llm_level is EvidenceLevel.NONE:
        return llm_level

    haystack = profile_text.lower()
    for terms in (rules.tech_terms, rules.hard_constraint_terms):
        required = _terms_in(requirement_text, terms)
        if required and not all(t.lower() in haystack for t in required):
            return EvidenceLevel.NONE

    return llm_level


def apply_literal_evidence(
        requirements: Sequence[RequirementMatch],
        profile_text: str,
        rules: LiteralEvidenceRules = DEFAULT_EVIDENCE_RULES,
) -> List[RequirementMatch]:
    """Return new RequirementMatch values; text and importance are never touched."""
    out: List[RequirementMatch] = []
    for req in requirements:
        level = enforce_literal_evidence(req.text, profile_text, req.evidence_level, rules)
        out.append(req if level is req.evidence_level else dataclasses.replace(req, evidence_level=level))
    return out
