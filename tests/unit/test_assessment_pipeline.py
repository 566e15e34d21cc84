from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

import honestfit.assessment as assessment
from honestfit.config import LLMConfig
from honestfit.errors import (
    AllProvidersFailedError,
    InputValidationError,
    LLMConfigurationError,
    LLMProviderError,
    MalformedOutputError,
)
from honestfit.llm.gateway import LLMGateway
from honestfit.llm.types import LLMRequest, LLMResponse, LLMRuntimeSettings
from honestfit.models import EvidenceLevel, FitLevel
from honestfit.recent_roles import JsonRecentRolesRepository

JOB_DESCRIPTION = """\
Senior Frontend Engineer
We need 5+ years React and TypeScript experience building product UIs.
Top Secret Clearance is required for this position.
Mentoring other engineers is a plus.
"""

LLM_REPLY = """Here is the analysis:
```json
[
  {"id": "react-ts", "text": "5+ years React and TypeScript", "importance": "core",
   "evidenceLevel": "match", "evidence": "Senior Frontend Engineer at Northwind (React, TypeScript)"},
  {"text": "Top Secret Clearance", "importance": "required", "evidenceLevel": "strong",
   "evidence": "Implied by seniority"},
  {"text": "Mentoring other engineers", "importance": "nice", "evidenceLevel": "partial",
   "evidence": "Mentored two junior engineers"}
]
```"""


class _ScriptedProvider:
    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.requests: List[LLMRequest] = []

    def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        return LLMResponse(text=self.text)


class _DownProvider:
    name = "openai"

    def generate(self, request: LLMRequest) -> LLMResponse:
        raise LLMProviderError("openai request failed: APIConnectionError")


def _gateway_with(**providers) -> LLMGateway:
    return LLMGateway(LLMConfig(), factories={name: (lambda cfg, p=p: p) for name, p in providers.items()})


# ---------------------------------------------------------------------------
# assess_fit
# ---------------------------------------------------------------------------

def test_clearance_is_forced_to_none_while_react_typescript_match_stands(demo_profile) -> None:
    provider = _ScriptedProvider("mock", LLM_REPLY)

    result = assessment.assess_fit(JOB_DESCRIPTION, demo_profile, gateway=_gateway_with(mock=provider))

    levels = {r.text: r.evidence_level for r in result.requirements}
    assert levels == {
        "5+ years React and TypeScript": EvidenceLevel.MATCH,
        "Top Secret Clearance": EvidenceLevel.NONE,
        "Mentoring other engineers": EvidenceLevel.PARTIAL,
    }
    # 1 of 2 core requirements matched -> 0.5 -> moderate
    assert result.fit is FitLevel.MODERATE
    assert result.gaps == [
        "Job requires: Top Secret Clearance - profile shows no explicit evidence for this requirement."
    ]
    assert result.strengths == [
        "Matches: 5+ years React and TypeScript (Senior Frontend Engineer at Northwind (React, TypeScript))",
        "Matches: Mentoring other engineers (Mentored two junior engineers)",
    ]
    assert result.requirements[1].id == "req-top-secret-clearance"
    assert result.debug is None


def test_prompt_carries_facts_profile_and_job(demo_profile) -> None:
    provider = _ScriptedProvider("mock", LLM_REPLY)
    assessment.assess_fit(JOB_DESCRIPTION, demo_profile, gateway=_gateway_with(mock=provider))

    request = provider.requests[0]
    assert request.system == assessment.REQUIREMENTS_SYSTEM_PROMPT
    assert "- Candidate has worked on B2B SaaS products." in request.user
    assert "Top Secret Clearance is required" in request.user
    assert '"name": "Alex Rivera"' in request.user


def test_debug_keeps_raw_first_response(demo_profile) -> None:
    provider = _ScriptedProvider("mock", LLM_REPLY)
    result = assessment.assess_fit(
        JOB_DESCRIPTION, demo_profile, gateway=_gateway_with(mock=provider), include_debug=True
    )
    assert result.debug is not None
    assert result.debug.parse_stage == "first"
    assert result.debug.raw_first_response == LLM_REPLY


def test_runtime_settings_reach_the_provider(demo_profile) -> None:
    ollama = _ScriptedProvider("ollama", LLM_REPLY)
    mock = _ScriptedProvider("mock", "unused")
    assessment.assess_fit(
        JOB_DESCRIPTION,
        demo_profile,
        gateway=_gateway_with(ollama=ollama, mock=mock),
        settings=LLMRuntimeSettings(provider="ollama", model="llama3.2", temperature=0.0),
    )
    assert mock.requests == []
    assert (ollama.requests[0].model, ollama.requests[0].temperature) == ("llama3.2", 0.0)


def test_fallback_provider_answers_when_primary_is_down(demo_profile) -> None:
    ollama = _ScriptedProvider("ollama", LLM_REPLY)
    gateway = _gateway_with(openai=_DownProvider(), ollama=ollama)
    result = assessment.assess_fit(
        JOB_DESCRIPTION,
        demo_profile,
        gateway=gateway,
        settings=LLMRuntimeSettings(provider="openai", fallback_providers=("ollama",)),
    )
    assert len(result.requirements) == 3


def test_short_job_description_is_rejected_before_any_llm_call(demo_profile) -> None:
    provider = _ScriptedProvider("mock", LLM_REPLY)
    with pytest.raises(InputValidationError, match="reasonably complete job description"):
        assessment.assess_fit("  React dev wanted  ", demo_profile, gateway=_gateway_with(mock=provider))
    assert provider.requests == []


def test_prose_reply_is_malformed_output(demo_profile) -> None:
    with pytest.raises(MalformedOutputError, match="LLM did not return valid requirements JSON"):
        assessment.assess_fit(JOB_DESCRIPTION, demo_profile, gateway=LLMGateway())


def test_array_without_valid_items_is_malformed_output(demo_profile) -> None:
    provider = _ScriptedProvider("mock", '[{"text": "React", "importance": "critical", "evidenceLevel": "match"}]')
    with pytest.raises(MalformedOutputError):
        assessment.assess_fit(JOB_DESCRIPTION, demo_profile, gateway=_gateway_with(mock=provider))


# ---------------------------------------------------------------------------
# friendly_error_message
# ---------------------------------------------------------------------------

def test_friendly_messages() -> None:
    assert assessment.friendly_error_message(AllProvidersFailedError(["openai: x"])) == (
        assessment.PROVIDER_UNAVAILABLE_MESSAGE
    )
    assert assessment.friendly_error_message(LLMProviderError("timeout")) == assessment.PROVIDER_UNAVAILABLE_MESSAGE
    assert assessment.friendly_error_message(MalformedOutputError("bad")) == assessment.MALFORMED_OUTPUT_MESSAGE
    assert assessment.friendly_error_message(LLMConfigurationError("Missing OPENAI_API_KEY")) == (
        "Missing OPENAI_API_KEY"
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch, fixtures_dir: Path):
    """Run the CLI from tmp_path with the scripted provider behind "mock"."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    monkeypatch.delenv("LLM_FALLBACK_PROVIDERS", raising=False)
    monkeypatch.setattr(assessment, "setup_logging", lambda level: None)
    monkeypatch.setattr(
        assessment,
        "LLMGateway",
        lambda cfg: LLMGateway(cfg, factories={"mock": lambda _: _ScriptedProvider("mock", LLM_REPLY)}),
    )
    job = tmp_path / "job.txt"
    job.write_text(JOB_DESCRIPTION, encoding="utf-8")
    return {"profile": str(fixtures_dir / "profile_demo.json"), "job": str(job)}


def test_cli_json_output_and_recent_roles(cli_env, capsys, tmp_path: Path) -> None:
    assessment.main(["--profile", cli_env["profile"], "--job", cli_env["job"], "--json"])

    data = json.loads(capsys.readouterr().out)
    assert data["fit"] == "moderate"
    assert "debug" not in data

    stored = json.loads((tmp_path / ".honestfit" / "recent_roles.json").read_text(encoding="utf-8"))
    assert stored[0]["label"] == "Senior Frontend Engineer"
    assert stored[0]["fit"]["fit"] == "moderate"


def test_cli_dry_run_writes_nothing(cli_env, capsys, tmp_path: Path) -> None:
    assessment.main(["--profile", cli_env["profile"], "--job", cli_env["job"], "--dry-run", "--debug"])

    out = capsys.readouterr().out
    assert "=== HonestFit Assessment ===" in out
    assert "Fit: MODERATE" in out
    assert not (tmp_path / ".honestfit").exists()


def test_cli_reports_friendly_error_and_exit_code(cli_env, capsys, tmp_path: Path) -> None:
    short_job = tmp_path / "short.txt"
    short_job.write_text("too short", encoding="utf-8")

    with pytest.raises(SystemExit) as e:
        assessment.main(["--profile", cli_env["profile"], "--job", str(short_job)])

    assert e.value.code == 2
    assert "Please paste a reasonably complete job description." in capsys.readouterr().err


def test_cli_lists_models(cli_env, capsys) -> None:
    assessment.main(["--list-models", "mock"])
    assert capsys.readouterr().out.strip() == "mock-model"


def test_cli_prints_result_when_recent_roles_cannot_be_saved(cli_env, capsys, tmp_path: Path) -> None:
    # A plain file where the store directory should be makes every write fail.
    (tmp_path / ".honestfit").write_text("not a directory", encoding="utf-8")

    assessment.main(["--profile", cli_env["profile"], "--job", cli_env["job"], "--json"])

    data = json.loads(capsys.readouterr().out)
    assert data["fit"] == "moderate"
    assert (tmp_path / ".honestfit").read_text(encoding="utf-8") == "not a directory"


def test_record_recent_role_logs_storage_errors(tmp_path: Path, caplog, minimal_profile) -> None:
    blocker = tmp_path / "store"
    blocker.write_text("", encoding="utf-8")
    result = assessment.compute_fit([], minimal_profile)

    with caplog.at_level("WARNING", logger="honestfit.assessment"):
        saved = assessment.record_recent_role(JsonRecentRolesRepository(blocker), JOB_DESCRIPTION, result)

    assert saved is False
    assert "Could not save recent roles" in caplog.text
    assert assessment.record_recent_role(JsonRecentRolesRepository(tmp_path / "ok"), JOB_DESCRIPTION, result) is True
