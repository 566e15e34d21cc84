from __future__ import annotations

from honestfit.core.text_processing import clean_llm_text, stable_slug
from honestfit.models import EvidenceLevel, Importance
from honestfit.requirements import (
    normalize_evidence_level,
    normalize_importance,
    normalize_requirement_matches,
    stable_requirement_id,
)


def test_literal_values_are_accepted() -> None:
    reqs = normalize_requirement_matches(
        [{"id": "r1", "text": "React", "importance": "core", "evidenceLevel": "match", "evidence": "5 years"}]
    )
    assert reqs is not None
    assert reqs[0].id == "r1"
    assert reqs[0].importance is Importance.CORE
    assert reqs[0].evidence_level is EvidenceLevel.MATCH
    assert reqs[0].evidence == "5 years"


def test_synonyms_are_mapped_case_insensitively() -> None:
    assert normalize_importance("Required") is Importance.CORE
    assert normalize_importance(" MUST ") is Importance.CORE
    assert normalize_importance("Preferred") is Importance.NICE
    assert normalize_importance("optional") is Importance.NICE
    assert normalize_evidence_level("Strong") is EvidenceLevel.MATCH
    assert normalize_evidence_level("full") is EvidenceLevel.MATCH
    assert normalize_evidence_level("some") is EvidenceLevel.PARTIAL
    assert normalize_evidence_level("No Evidence") is EvidenceLevel.NONE
    assert normalize_evidence_level("no-evidence") is EvidenceLevel.NONE


def test_unknown_values_are_rejected() -> None:
    assert normalize_importance("critical") is None
    assert normalize_importance(3) is None
    assert normalize_evidence_level("maybe") is None
    assert normalize_evidence_level(None) is None


def test_id_is_derived_from_text_when_missing() -> None:
    reqs = normalize_requirement_matches(
        [{"text": "Own the marketing site end-to-end!!", "importance": "required", "evidenceLevel": "strong"}]
    )
    assert reqs is not None
    assert reqs[0].id == "req-own-the-marketing-site-end-to-end"
    assert reqs[0].importance is Importance.CORE
    assert reqs[0].evidence_level is EvidenceLevel.MATCH
    assert reqs[0].evidence is None


def test_id_falls_back_to_one_based_index_when_slug_is_empty() -> None:
    assert stable_requirement_id("!!!", 2) == "req-3"


def test_slug_is_truncated_after_trimming_edge_hyphens() -> None:
    slug = stable_slug("--" + "a" * 60)
    assert slug == "a" * 48


def test_invalid_items_are_dropped_and_order_kept() -> None:
    reqs = normalize_requirement_matches(
        [
            {"text": "First", "importance": "core", "evidenceLevel": "match"},
            "not an object",
            {"importance": "core", "evidenceLevel": "match"},
            {"text": "   ", "importance": "core", "evidenceLevel": "match"},
            {"text": "Bad level", "importance": "core", "evidenceLevel": "excellent"},
            {"text": "Second", "importance": "nice", "evidenceLevel": "none"},
        ]
    )
    assert reqs is not None
    assert [r.text for r in reqs] == ["First", "Second"]


def test_empty_or_non_list_is_invalid() -> None:
    assert normalize_requirement_matches([]) is None
    assert normalize_requirement_matches({"text": "x"}) is None
    assert normalize_requirement_matches([{"text": "x", "importance": "huh", "evidenceLevel": "match"}]) is None


def test_text_fences_are_stripped_but_inner_whitespace_kept() -> None:
    assert clean_llm_text("```json\nBuild  APIs\r\n```") == "Build  APIs"

    reqs = normalize_requirement_matches(
        [{"text": "```Lead  a team```", "importance": "nice", "evidenceLevel": "partial", "evidence": "   "}]
    )
    assert reqs is not None
    assert reqs[0].text == "Lead  a team"
    assert reqs[0].evidence is None
