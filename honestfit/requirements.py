from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from honestfit.core.text_processing import clean_llm_text, stable_slug
from honestfit.models import EvidenceLevel, Importance, RequirementMatch

# Synonyms the LLM tends to use instead of the literal enum values.
# Matched after lowercasing + trimming.
_IMPORTANCE_SYNONYMS: Dict[str, Importance] = {
    "must": Importance.CORE,
    "required": Importance.CORE,
    "optional": Importance.NICE,
    "preferred": Importance.NICE,
}

_EVIDENCE_SYNONYMS: Dict[str, EvidenceLevel] = {
    "no-evidence": EvidenceLevel.NONE,
    "no evidence": EvidenceLevel.NONE,
    "full": EvidenceLevel.MATCH,
    "strong": EvidenceLevel.MATCH,
    "some": EvidenceLevel.PARTIAL,
}


def _as_clean_string(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return clean_llm_text(value)


def normalize_importance(value: Any) -> Optional[Importance]:
    if value in ("core", "nice"):
        return Importance(value)
    if isinstance(value, str):
        return _IMPORTANCE_SYNONYMS.get(value.lower().strip())
    return None


def normalize_evidence_level(value: Any) -> Optional[EvidenceLevel]:
    if value in ("match", "partial", "none"):
        return EvidenceLevel(value)
    if isinstance(value, str):
        return _EVIDENCE_SYNONYMS.get(value.lower().strip())
    return None


def stable_requirement_id(text: str, index: int) -> str:
    """`index` is 0-based; the fallback id is 1-based."""
    slug = stable_slug(text)
    return f"req-{slug}" if slug else f"req-{index + 1}"


def normalize_requirement(record: Mapping[str, Any], index: int) -> Optional[RequirementMatch]:
    text = _as_clean_string(record.get("text"))
    importance = normalize_importance(record.get("importance"))
    evidence_level = normalize_evidence_level(record.get("evidenceLevel"))
    if not text or importance is None or evidence_level is None:
        return None

    return RequirementMatch(
        id=_as_clean_string(record.get("id")) or stable_requirement_id(text, index),
        text=text,
        importance=importance,
        evidence_level=evidence_level,
        evidence=_as_clean_string(record.get("evidence")) or None,
    )


def normalize_requirement_matches(value: Any) -> Optional[List[RequirementMatch]]:
    """
    Validate loosely-typed LLM JSON into RequirementMatch values.

    - value must be a list; non-object items and items missing text /
      importance / evidenceLevel are dropped
    - returns None ("invalid") when nothing survives, so a malformed but
      technically-array response is never accepted as an empty success
    """
    if not isinstance(value, list):
        return None

    result: List[RequirementMatch] = []
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            continue
        req = normalize_requirement(item, index)
        if req is not None:
            result.append(req)

    return result or None
