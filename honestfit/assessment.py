from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from honestfit import config
from honestfit.errors import (
    AllProvidersFailedError,
    HonestFitError,
    InputValidationError,
    LLMProviderError,
    MalformedOutputError,
)
from honestfit.evidence import DEFAULT_EVIDENCE_RULES, LiteralEvidenceRules, apply_literal_evidence, profile_search_text
from honestfit.io.profile_files import load_profile_file
from honestfit.llm.gateway import LLMGateway
from honestfit.llm.prompt import REQUIREMENTS_SYSTEM_PROMPT, build_requirements_prompt
from honestfit.llm.types import LLMRuntimeSettings
from honestfit.logging_config import setup_logging
from honestfit.matching.engine import compute_fit
from honestfit.models import CandidateProfile, FitDebug, FitResult, RequirementMatch
from honestfit.profile_facts import derive_profile_facts
from honestfit.recent_roles import JsonRecentRolesRepository, default_repo_dir
from honestfit.requirements import normalize_requirement_matches

logger = logging.getLogger(__name__)

PROVIDER_UNAVAILABLE_MESSAGE = "The AI provider is not available. Please check your settings or try again later."
MALFORMED_OUTPUT_MESSAGE = "The AI response was not in the expected format. Try again, or simplify the job description."
REQUIREMENTS_JSON_ERROR = "LLM did not return valid requirements JSON"


def validate_job_description(job_description: str) -> str:
    text = (job_description or "").strip()
    if len(text) < config.MIN_JOB_DESCRIPTION_CHARS:
        raise InputValidationError("Please paste a reasonably complete job description.")
    return text


def analyze_requirements(
        job_description: str,
        profile: CandidateProfile,
        *,
        gateway: LLMGateway,
        settings: Optional[LLMRuntimeSettings] = None,
) -> Tuple[List[RequirementMatch], str]:
    """
    One LLM round trip: derive facts, prompt, extract and normalize.
    Returns (requirements as classified by the model, raw response text).
    """
    facts = derive_profile_facts(profile)
    logger.debug("Derived %d profile facts", len(facts))
    user_prompt = build_requirements_prompt(profile=profile, job_description=job_description, facts=facts)

    requirements, raw = gateway.generate_json(
        REQUIREMENTS_SYSTEM_PROMPT,
        user_prompt,
        parse=normalize_requirement_matches,
        settings=settings,
        error_message=REQUIREMENTS_JSON_ERROR,
    )
    return requirements, raw


def assess_fit(
        job_description: str,
        profile: CandidateProfile,
        *,
        gateway: LLMGateway,
        settings: Optional[LLMRuntimeSettings] = None,
        evidence_rules: LiteralEvidenceRules = DEFAULT_EVIDENCE_RULES,
        include_debug: bool = False,
) -> FitResult:
    """
    The full pipeline for one job description.

    The model only classifies requirements. Literal-evidence rules then
    downgrade unsupported claims, and scoring is deterministic.
    """
    job_description = validate_job_description(job_description)

    requirements, raw = analyze_requirements(job_description, profile, gateway=gateway, settings=settings)
    corrected = apply_literal_evidence(requirements, profile_search_text(profile), evidence_rules)

    downgraded = sum(1 for a, b in zip(requirements, corrected) if a.evidence_level is not b.evidence_level)
    if downgraded:
        logger.info("Literal-evidence rules downgraded %d requirement(s)", downgraded)

    debug = FitDebug(raw_first_response=raw) if include_debug else None
    return compute_fit(corrected, profile, debug=debug)


def friendly_error_message(exc: BaseException) -> str:
    if isinstance(exc, (AllProvidersFailedError, LLMProviderError)):
        return PROVIDER_UNAVAILABLE_MESSAGE
    if isinstance(exc, MalformedOutputError):
        return MALFORMED_OUTPUT_MESSAGE
    message = str(exc)
    return message or "Something went wrong while contacting the AI provider."


def print_human_summary(result: FitResult) -> None:
    print("\n=== HonestFit Assessment ===")
    print(f"Fit: {result.fit.value.upper()}")
    print(f"\n{result.summary}")

    print("\nStrengths:")
    if result.strengths:
        for s in result.strengths:
            print(f"  + {s}")
    else:
        print("  (none)")

    print("\nGaps:")
    if result.gaps:
        for g in result.gaps:
            print(f"  - {g}")
    else:
        print("  (none)")

    print("\nRequirements:")
    for r in result.requirements:
        print(f"  [{r.importance.value:<4}] {r.evidence_level.value:<7} {r.text}")

    print(f"\nVerdict: {result.verdict}")


def record_recent_role(repo: JsonRecentRolesRepository, job_description: str, result: FitResult) -> bool:
    """
    Best-effort history write; a storage failure never hides a finished result.
    Returns True when the role was recorded.
    """
    try:
        repo.record(job_description=job_description.strip(), fit=result)
    except OSError as exc:
        logger.warning("Could not save recent roles to %s: %s", repo.path, exc)
        return False
    return True


def _read_job_description(raw: str) -> str:
    if raw == "-":
        return sys.stdin.read()
    path = Path(raw)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputValidationError(f"Could not read job description {path}: {exc.strerror}") from exc


def _settings_from_args(args: argparse.Namespace) -> LLMRuntimeSettings:
    fallbacks = None
    if args.fallback is not None:
        fallbacks = config.parse_provider_list(args.fallback)
    return LLMRuntimeSettings(
        provider=args.provider,
        fallback_providers=fallbacks,
        model=args.model,
        temperature=args.temperature,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HonestFit: honest job requirement matching")
    parser.add_argument("--profile", type=str, default="", help="Path to a profile JSON (export envelope or bare profile)")
    parser.add_argument("--job", type=str, default="", help="Path to a job description text file, or - for stdin")
    parser.add_argument("--provider", choices=config.KNOWN_PROVIDERS, default=None, help="Primary LLM provider (default: LLM_PROVIDER)")
    parser.add_argument("--fallback", type=str, default=None, help="Comma-separated fallback providers (default: LLM_FALLBACK_PROVIDERS)")
    parser.add_argument("--model", type=str, default=None, help="Model override for every provider in the chain")
    parser.add_argument("--temperature", type=float, default=None, help="Sampling temperature (default: LLM_TEMPERATURE)")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    parser.add_argument("--debug", action="store_true", help="Attach the raw LLM response to the result")
    parser.add_argument("--dry-run", action="store_true", help="Do not record the result in recent roles")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline progress to stderr")
    parser.add_argument("--list-models", metavar="PROVIDER", default=None, help="List models for a provider and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging("INFO" if args.verbose else "WARNING")
    gateway = LLMGateway(config.load_llm_config())

    try:
        if args.list_models:
            for name in gateway.list_models(args.list_models):
                print(name)
            return

        if not args.profile or not args.job:
            parser.error("--profile and --job are required unless --list-models is given")

        profile = load_profile_file(Path(args.profile))
        job_description = _read_job_description(args.job)
        result = assess_fit(
            job_description,
            profile,
            gateway=gateway,
            settings=_settings_from_args(args),
            include_debug=args.debug,
        )
    except HonestFitError as exc:
        logger.debug("Assessment failed", exc_info=True)
        print(f"\n[HonestFit] {friendly_error_message(exc)}", file=sys.stderr)
        raise SystemExit(2)

    if not args.dry_run:
        record_recent_role(JsonRecentRolesRepository(default_repo_dir()), job_description, result)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_human_summary(result)


if __name__ == "__main__":
    main()
