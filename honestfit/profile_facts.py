"""
honestfit/profile_facts.py

Short ground-truth facts derived from the profile for the requirement prompt.

Pattern notes:
- the AI-tools check matches "ai" only as a whole word, so words
  such as "email" or "maintain" do not count as AI tooling
- the mentoring/leadership check is case-insensitive for skills and for
  experience text alike
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from honestfit.models import CandidateProfile


@dataclass(frozen=True)
class FactCheck:
    """
    One grounding fact: emitted when `skill_pattern` matches a skill in
    `skill_buckets` (all buckets when empty) or `experience_pattern` matches
    any experience entry's domain/role/stack/highlights text.
    """
    fact: str
    skill_pattern: Optional[Pattern[str]]
    skill_buckets: Tuple[str, ...]
    experience_pattern: Pattern[str]


def _rx(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# Fixed order: facts appear in the prompt in this order.
FACT_CHECKS: Tuple[FactCheck, ...] = (
    FactCheck(
        "Candidate has significant experience building SPAs with React.",
        _rx(r"react"), ("frontend",),
        _rx(r"\breact\b"),
    ),
    FactCheck(
        "Candidate is comfortable using TypeScript in production.",
        _rx(r"typescript"), ("frontend",),
        _rx(r"\btypescript|\bts\b"),
    ),
    FactCheck(
        "Candidate has experience with Next.js and/or SSR rendering patterns.",
        _rx(r"next\.?js|ssr|server[- ]side rendering"), ("frontend",),
        _rx(r"next\.?js|ssr|server[- ]side rendering"),
    ),
    FactCheck(
        "Candidate has hands-on experience with design systems and component libraries.",
        _rx(r"design system|component librar"), ("designSystems",),
        _rx(r"design system|component librar"),
    ),
    FactCheck(
        "Candidate has worked on B2B SaaS products.",
        None, (),
        _rx(r"\bb2b saas\b"),
    ),
    FactCheck(
        "Candidate has written tests with Jest.",
        _rx(r"jest"), ("testing",),
        _rx(r"\bjest\b"),
    ),
    FactCheck(
        "Candidate has written end-to-end tests (for example Cypress or Playwright).",
        _rx(r"cypress|playwright"), ("testing",),
        _rx(r"\bcypress\b|\bplaywright\b"),
    ),
    FactCheck(
        "Candidate has used Storybook or similar tooling for UI development.",
        _rx(r"storybook"), ("designSystems", "frontend"),
        _rx(r"storybook"),
    ),
    FactCheck(
        "Candidate has applied accessibility practices in frontend work.",
        _rx(r"accessibility|a11y|wcag"), ("frontend",),
        _rx(r"accessibility|a11y|wcag"),
    ),
    FactCheck(
        "Candidate has experience with mentoring or technical leadership responsibilities.",
        _rx(r"mentor|lead|leadership"), (),
        _rx(r"mentor|mentoring|lead|leadership"),
    ),
    FactCheck(
        "Candidate regularly uses AI tools (for example Cursor and LLM assistants) "
        "as part of the development workflow.",
        _rx(r"cursor|chatgpt|claude|llm|\bai\b"), ("aiTools",),
        _rx(r"cursor|chatgpt|claude|llm|\bai\b"),
    ),
)


def _has_skill(profile: CandidateProfile, pattern: Optional[Pattern[str]], buckets: Tuple[str, ...]) -> bool:
    if pattern is None:
        return False
    return any(pattern.search(s) for s in profile.skills_in(list(buckets)))


def _has_experience_text(profile: CandidateProfile, pattern: Pattern[str]) -> bool:
    return any(pattern.search(exp.searchable_text()) for exp in profile.experience)


def derive_profile_facts(
        profile: CandidateProfile,
        checks: Optional[Tuple[FactCheck, ...]] = None,
) -> List[str]:
    """
    Short natural-language facts that ground the requirement prompt.
    Absent signals are simply omitted; no negative facts are generated.
    """
    facts: List[str] = []
    for check in checks if checks is not None else FACT_CHECKS:
        if check.fact in facts:
            continue
        if _has_skill(profile, check.skill_pattern, check.skill_buckets) or _has_experience_text(
                profile, check.experience_pattern
        ):
            facts.append(check.fact)
    return facts


def format_facts_section(facts: List[str]) -> str:
    if not facts:
        return "- No additional derived facts available; rely on the profile JSON."
    return "- " + "\n- ".join(facts)
