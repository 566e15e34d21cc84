"""
honestfit/llm/prompt.py

Builds the requirement-extraction prompt from the profile, its derived facts
and the job description.

Design constraints:
- The LLM only extracts + classifies requirements; scoring is deterministic code.
- Derived FACTS are ground truth so the model does not invent gaps.
- At most 6 "core" requirements (prompt-level only; the scorer tolerates more).
"""
from __future__ import annotations

import json
from typing import List, Optional

from honestfit.models import CandidateProfile
from honestfit.profile_facts import derive_profile_facts, format_facts_section

REQUIREMENTS_SYSTEM_PROMPT = """\
You are helping evaluate how well a candidate matches a job description.
You are given a set of FACTS about the candidate derived from profile data.

Your ONLY task in this step is to:
- Extract the most important requirements/responsibilities from the job description.
- For each requirement, classify whether the candidate profile shows:
  - "match" (clear or strong implied evidence),
  - "partial" (some related/adjacent evidence), or
  - "none" (no meaningful evidence).
- Mark whether each requirement is "core" or "nice".
- Provide a short "evidence" string when evidence exists, grounded explicitly in the profile.

IMPORTANT INTERPRETATION RULES:

- Treat the provided FACTS section as ground truth.
- You MUST NOT claim "no evidence" for any capability that appears in the FACTS list.
- For adjacent requirements (for example B2B SaaS vs marketing sites, or design systems vs broader frontend ownership), describe transferability as "partial" when not identical, rather than "none".

- You MUST use semantic reasoning, not exact string matching.
  - If the profile shows multi-year React/TypeScript SPA work, that counts as expert-level React/TypeScript unless the job requires something very different.
  - If the profile shows SSR / Next.js experience, that supports requirements mentioning Next.js or SEO-aware rendering.
  - If the profile mentions B2B SaaS, ecommerce, or public-facing SPAs, that counts as at least a partial match for "high-traffic SaaS or startup websites".
  - If the profile includes bullets like "Collaborated with product and backend engineers" or soft skills like "Cross-functional collaboration", that is evidence for collaboration with cross-functional teams.
  - If the profile lists "Team leadership and mentoring" or similar, that is evidence for mentoring and setting standards.

- When in doubt between "partial" and "none", choose "partial".
  Reserve "none" only when you truly have no reasonable evidence from the profile.

- Focus CORE requirements on capabilities and experience that are central to doing the job:
  examples: owning a marketing site, React/TypeScript/Next.js proficiency, web performance/accessibility, collaborating with design/marketing, mentoring.
  Soft requirements like "has a portfolio", "is highly opinionated", or "strong communicator" should usually be "nice" unless the job explicitly frames them as must-haves.

- Limit the number of "core" requirements to at most 6. Everything else should be marked "nice".

You must NOT invent gaps that contradict the profile.
For example, if the profile clearly shows React/TypeScript and multiple years of frontend SPA work, you MUST NOT say they lack React or TypeScript experience.

Return ONLY a JSON array of objects with shape:

[
  {
    "id": "short-stable-id",
    "text": "requirement text in your own words",
    "importance": "core" | "nice",
    "evidenceLevel": "match" | "partial" | "none",
    "evidence": "short explanation or quote from the profile, or empty string"
  }
]\
"""


def build_requirements_prompt(
        *,
        profile: CandidateProfile,
        job_description: str,
        facts: Optional[List[str]] = None,
) -> str:
    """
    Assemble the user-turn prompt. Facts are derived from the profile unless given.
    """
    if facts is None:
        facts = derive_profile_facts(profile)
    profile_json = json.dumps(profile.to_dict(), indent=2, ensure_ascii=False)

    return f"""\
Candidate profile (JSON):
{profile_json}

FACTS ABOUT THIS CANDIDATE (treat these as ground truth; do not claim the opposite of these):
{format_facts_section(facts)}

Job description:
{job_description.strip()}

Steps:
1) Identify 5-10 key requirements.
2) Mark at most 6 as "core", the rest as "nice".
3) For each, classify evidenceLevel using the rules above, erring towards "partial" when anything related appears in the profile.
4) Return the JSON array with NO extra commentary.\
"""
