from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from honestfit.core.text_processing import clean_string_list, normalize_whitespace
from honestfit.errors import ProfileValidationError


class Importance(str, Enum):
    CORE = "core"
    NICE = "nice"


class EvidenceLevel(str, Enum):
    MATCH = "match"
    PARTIAL = "partial"
    NONE = "none"


class FitLevel(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


def _str(value: Any) -> str:
    return normalize_whitespace(value) if isinstance(value, str) else ""


def _opt_str(value: Any) -> Optional[str]:
    s = _str(value)
    return s or None


def _opt_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _records(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, Mapping)]


# ---------------------------------------------------------------------------
# Candidate profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProfileLink:
    label: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "url": self.url}


@dataclass(frozen=True)
class CandidateExperience:
    company: str
    role: str
    location: str = ""
    start: Optional[str] = None
    end: Optional[str] = None  # None = ongoing
    domain: str = ""
    stack: List[str] = field(default_factory=list)
    highlights: List[str] = field(default_factory=list)
    links: List[ProfileLink] = field(default_factory=list)

    @property
    def display_key(self) -> Tuple[str, str, str]:
        return (self.company, self.role, self.start or "")

    def searchable_text(self) -> str:
        """domain + role + stack + highlights, the text the fact checks scan."""
        return f"{self.domain} {self.role} {' '.join(self.stack)} {' '.join(self.highlights)}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateExperience":
        links = []
        for link in _records(data.get("links")):
            label, url = _str(link.get("label")), _str(link.get("url"))
            if label and url:
                links.append(ProfileLink(label=label, url=url))
        return cls(
            company=_str(data.get("company")),
            role=_str(data.get("role")),
            location=_str(data.get("location")),
            start=_opt_str(data.get("start")),
            end=_opt_str(data.get("end")),
            domain=_str(data.get("domain")),
            stack=clean_string_list(data.get("stack") or []),
            highlights=clean_string_list(data.get("highlights") or []),
            links=links,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "company": self.company,
            "role": self.role,
            "location": self.location,
            "start": self.start,
            "end": self.end,
            "domain": self.domain,
            "stack": list(self.stack),
            "highlights": list(self.highlights),
        }
        if self.links:
            d["links"] = [link.to_dict() for link in self.links]
        return d


@dataclass(frozen=True)
class CandidateStory:
    id: str
    title: str
    summary: str
    takeaways: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateStory":
        return cls(
            id=_str(data.get("id")),
            title=_str(data.get("title")),
            summary=_str(data.get("summary")),
            takeaways=clean_string_list(data.get("takeaways") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "takeaways": list(self.takeaways),
        }


@dataclass(frozen=True)
class WorkMode:
    remote_only: bool = False
    remote_regions: List[str] = field(default_factory=list)
    willing_to_travel_occasionally: bool = False
    hybrid_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remoteOnly": self.remote_only,
            "remoteRegions": list(self.remote_regions),
            "willingToTravelOccasionally": self.willing_to_travel_occasionally,
            "hybridRequired": self.hybrid_required,
        }


@dataclass(frozen=True)
class Compensation:
    min_base_salary_usd: Optional[float] = None
    min_contract_rate_usd_per_hour: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.min_base_salary_usd is not None:
            d["minBaseSalaryUsd"] = self.min_base_salary_usd
        if self.min_contract_rate_usd_per_hour is not None:
            d["minContractRateUsdPerHour"] = self.min_contract_rate_usd_per_hour
        return d


@dataclass(frozen=True)
class Preferences:
    role_titles_preferred: List[str] = field(default_factory=list)
    role_titles_avoid: List[str] = field(default_factory=list)
    work_mode: WorkMode = field(default_factory=WorkMode)
    compensation: Compensation = field(default_factory=Compensation)
    domains_preferred: List[str] = field(default_factory=list)
    domains_avoid: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Preferences":
        wm = _mapping(data.get("workMode"))
        comp = _mapping(data.get("compensation"))
        return cls(
            role_titles_preferred=clean_string_list(data.get("roleTitlesPreferred") or []),
            role_titles_avoid=clean_string_list(data.get("roleTitlesAvoid") or []),
            work_mode=WorkMode(
                remote_only=bool(wm.get("remoteOnly", False)),
                remote_regions=clean_string_list(wm.get("remoteRegions") or []),
                willing_to_travel_occasionally=bool(wm.get("willingToTravelOccasionally", False)),
                hybrid_required=bool(wm.get("hybridRequired", False)),
            ),
            compensation=Compensation(
                min_base_salary_usd=_opt_number(comp.get("minBaseSalaryUsd")),
                min_contract_rate_usd_per_hour=_opt_number(comp.get("minContractRateUsdPerHour")),
            ),
            domains_preferred=clean_string_list(data.get("domainsPreferred") or []),
            domains_avoid=clean_string_list(data.get("domainsAvoid") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roleTitlesPreferred": list(self.role_titles_preferred),
            "roleTitlesAvoid": list(self.role_titles_avoid),
            "workMode": self.work_mode.to_dict(),
            "compensation": self.compensation.to_dict(),
            "domainsPreferred": list(self.domains_preferred),
            "domainsAvoid": list(self.domains_avoid),
        }


@dataclass(frozen=True)
class ProfileMeta:
    profile_version: Optional[str] = None
    last_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.profile_version is not None:
            d["profileVersion"] = self.profile_version
        if self.last_updated is not None:
            d["lastUpdated"] = self.last_updated
        return d


@dataclass(frozen=True)
class CandidateProfile:
    """
    Structured résumé consumed by the fit pipeline.
    Hosts build it with from_dict() from the camelCase JSON the UI stores.
    """
    name: str
    headline: str
    summary: str

    sub_headline: str = ""
    location: str = ""
    preferences: Preferences = field(default_factory=Preferences)
    core_strengths: List[str] = field(default_factory=list)
    # Open-ended buckets; "frontend", "testing", "designSystems", "aiTools" feed fact derivation.
    skills: Dict[str, List[str]] = field(default_factory=dict)
    experience: List[CandidateExperience] = field(default_factory=list)
    stories: List[CandidateStory] = field(default_factory=list)
    meta: Optional[ProfileMeta] = None

    def __post_init__(self) -> None:
        for attr in ("name", "headline", "summary", "sub_headline", "location"):
            object.__setattr__(self, attr, normalize_whitespace(getattr(self, attr)))
        missing = [attr for attr in ("name", "headline", "summary") if not getattr(self, attr)]
        if missing:
            raise ProfileValidationError(f"Profile is missing required fields: {', '.join(missing)}")

    def skills_in(self, buckets: Optional[List[str]] = None) -> List[str]:
        """All skills, or only those in the named buckets (unknown buckets contribute nothing)."""
        if buckets:
            return [s for b in buckets for s in self.skills.get(b, [])]
        return [s for values in self.skills.values() for s in values]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateProfile":
        if not isinstance(data, Mapping):
            raise ProfileValidationError("Profile must be a JSON object.")

        skills: Dict[str, List[str]] = {}
        for category, values in _mapping(data.get("skills")).items():
            if isinstance(values, list):
                skills[str(category)] = clean_string_list(values)

        meta_raw = data.get("meta")
        meta = None
        if isinstance(meta_raw, Mapping):
            meta = ProfileMeta(
                profile_version=_opt_str(meta_raw.get("profileVersion")),
                last_updated=_opt_str(meta_raw.get("lastUpdated")),
            )

        return cls(
            name=_str(data.get("name")),
            headline=_str(data.get("headline")),
            summary=_str(data.get("summary")),
            sub_headline=_str(data.get("subHeadline")),
            location=_str(data.get("location")),
            preferences=Preferences.from_dict(_mapping(data.get("preferences"))),
            core_strengths=clean_string_list(data.get("coreStrengths") or []),
            skills=skills,
            experience=[CandidateExperience.from_dict(e) for e in _records(data.get("experience"))],
            stories=[CandidateStory.from_dict(s) for s in _records(data.get("stories"))],
            meta=meta,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "headline": self.headline,
            "subHeadline": self.sub_headline,
            "location": self.location,
            "summary": self.summary,
            "preferences": self.preferences.to_dict(),
            "coreStrengths": list(self.core_strengths),
            "skills": {k: list(v) for k, v in self.skills.items()},
            "experience": [e.to_dict() for e in self.experience],
            "stories": [s.to_dict() for s in self.stories],
        }
        if self.meta is not None:
            d["meta"] = self.meta.to_dict()
        return d


# ---------------------------------------------------------------------------
# Requirement matching / fit output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RequirementMatch:
    """
    One requirement extracted by the LLM, with the candidate's evidence level.
    Only evidence_level is ever rewritten after construction (literal-evidence rule).
    """
    id: str
    text: str
    importance: Importance
    evidence_level: EvidenceLevel
    evidence: Optional[str] = None

    @property
    def is_core(self) -> bool:
        return self.importance is Importance.CORE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RequirementMatch":
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            importance=Importance(data["importance"]),
            evidence_level=EvidenceLevel(data["evidenceLevel"]),
            evidence=data.get("evidence") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "importance": self.importance.value,
            "evidenceLevel": self.evidence_level.value,
        }
        if self.evidence is not None:
            d["evidence"] = self.evidence
        return d


@dataclass(frozen=True)
class FitDebug:
    raw_first_response: str
    parse_stage: str = "first"

    def to_dict(self) -> Dict[str, Any]:
        return {"parseStage": self.parse_stage, "rawFirstResponse": self.raw_first_response}


@dataclass(frozen=True)
class FitResult:
    fit: FitLevel
    summary: str
    strengths: List[str]
    gaps: List[str]
    verdict: str
    requirements: List[RequirementMatch] = field(default_factory=list)
    debug: Optional[FitDebug] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FitResult":
        debug_raw = data.get("debug")
        debug = None
        if isinstance(debug_raw, Mapping):
            debug = FitDebug(
                raw_first_response=str(debug_raw.get("rawFirstResponse", "")),
                parse_stage=str(debug_raw.get("parseStage", "first")),
            )
        return cls(
            fit=FitLevel(data["fit"]),
            summary=str(data.get("summary", "")),
            strengths=[str(s) for s in data.get("strengths") or []],
            gaps=[str(g) for g in data.get("gaps") or []],
            verdict=str(data.get("verdict", "")),
            requirements=[RequirementMatch.from_dict(r) for r in _records(data.get("requirements"))],
            debug=debug,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "fit": self.fit.value,
            "summary": self.summary,
            "strengths": list(self.strengths),
            "gaps": list(self.gaps),
            "verdict": self.verdict,
            "requirements": [r.to_dict() for r in self.requirements],
        }
        if self.debug is not None:
            d["debug"] = self.debug.to_dict()
        return d
