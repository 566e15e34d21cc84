from __future__ import annotations

import pytest

import honestfit.llm.gateway as gw
from honestfit.config import LLMConfig
from honestfit.errors import AllProvidersFailedError, LLMConfigurationError, LLMProviderError, MalformedOutputError
from honestfit.llm.providers import MockProvider
from honestfit.llm.types import LLMRequest, LLMResponse, LLMRuntimeSettings, ProviderChain


class _StaticProvider:
    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.requests = []

    def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        return LLMResponse(text=self.text)


class _FailingProvider:
    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        self.calls = 0

    def generate(self, request: LLMRequest) -> LLMResponse:
        self.calls += 1
        raise LLMProviderError(self.message)


def _gateway(providers, config: LLMConfig | None = None) -> gw.LLMGateway:
    return gw.LLMGateway(config or LLMConfig(), factories={name: (lambda cfg, p=p: p) for name, p in providers.items()})


# ---------------------------------------------------------------------------
# Failover
# ---------------------------------------------------------------------------

def test_failover_returns_first_successful_fallback() -> None:
    primary = _FailingProvider("openai", "openai request failed (500): \"boom\"")
    fallback = _StaticProvider("ollama", "from ollama")
    later = _StaticProvider("mock", "never used")

    text = gw.call_with_providers(LLMRequest(system="s", user="u"), ProviderChain(primary, [fallback, later]))

    assert text == "from ollama"
    assert primary.calls == 1
    assert later.requests == []


def test_total_failure_lists_every_provider_in_order() -> None:
    chain = ProviderChain(_FailingProvider("openai", "e1"), [_FailingProvider("cursor", "e2")])
    with pytest.raises(AllProvidersFailedError) as e:
        gw.call_with_providers(LLMRequest(system="s", user="u"), chain)
    assert str(e.value) == "All LLM providers failed. openai: e1 | cursor: e2"
    assert e.value.failures == ["openai: e1", "cursor: e2"]


def test_non_provider_exceptions_are_collected_too() -> None:
    class _Broken:
        name = "ollama"

        def generate(self, request):
            raise ValueError("bad payload")

    with pytest.raises(AllProvidersFailedError) as e:
        gw.call_with_providers(LLMRequest(system="s", user="u"), ProviderChain(_Broken()))
    assert "ollama: bad payload" in str(e.value)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def test_unknown_or_missing_provider_resolves_to_mock() -> None:
    assert gw.provider_name(None) == "mock"
    assert gw.provider_name(" OpenAI ") == "openai"
    assert gw.provider_name("gemini") == "mock"

    chain = gw.LLMGateway(LLMConfig(provider="gemini")).resolve()
    assert isinstance(chain.primary, MockProvider)
    assert chain.fallbacks == []


def test_runtime_settings_override_config_and_drop_primary_from_fallbacks() -> None:
    providers = {
        "openai": _StaticProvider("openai", "o"),
        "ollama": _StaticProvider("ollama", "l"),
        "mock": _StaticProvider("mock", "m"),
    }
    gateway = _gateway(providers, LLMConfig(provider="openai", fallback_providers=("mock",)))

    chain = gateway.resolve(LLMRuntimeSettings(provider="ollama", fallback_providers=("ollama", "openai")))
    assert chain.primary.name == "ollama"
    assert [p.name for p in chain.fallbacks] == ["openai"]

    chain = gateway.resolve()
    assert [p.name for p in chain.ordered()] == ["openai", "mock"]


def test_missing_key_is_a_configuration_error() -> None:
    gateway = gw.LLMGateway(LLMConfig(provider="openai"))
    with pytest.raises(LLMConfigurationError) as e:
        gateway.resolve()
    assert str(e.value) == "Missing OPENAI_API_KEY for LLM_PROVIDER=openai."

    with pytest.raises(LLMConfigurationError):
        gateway.create_provider("cursor")
    with pytest.raises(LLMConfigurationError):
        gateway.create_provider("anthropic")


def test_request_model_and_temperature_precedence() -> None:
    gateway = gw.LLMGateway(LLMConfig(model="cfg-model", temperature=0.7))
    req = gateway.build_request("s", "u")
    assert (req.model, req.temperature) == ("cfg-model", 0.7)

    req = gateway.build_request("s", "u", LLMRuntimeSettings(model="run-model", temperature=0.0))
    assert (req.model, req.temperature) == ("run-model", 0.0)


# ---------------------------------------------------------------------------
# generate_text / generate_json
# ---------------------------------------------------------------------------

def test_mock_provider_is_used_without_configuration() -> None:
    text = gw.LLMGateway().generate_text("system", "Evaluate this job")
    assert text == "LLM stub (mock): plug in a real model provider. Prompt preview: Evaluate this job..."


def test_generate_json_returns_parsed_value_and_raw_text() -> None:
    raw = 'Here:\n```json\n[1, 2]\n```'
    gateway = _gateway({"mock": _StaticProvider("mock", raw)})
    parsed, text = gateway.generate_json("s", "u", parse=lambda v: v)
    assert parsed == [1, 2]
    assert text == raw


def test_generate_json_raises_on_prose_or_rejected_value() -> None:
    gateway = _gateway({"mock": _StaticProvider("mock", "no json here")})
    with pytest.raises(MalformedOutputError) as e:
        gateway.generate_json("s", "u", parse=lambda v: v, error_message="bad output")
    assert str(e.value) == "bad output"

    gateway = _gateway({"mock": _StaticProvider("mock", "[]")})
    with pytest.raises(MalformedOutputError):
        gateway.generate_json("s", "u", parse=lambda v: v or None)


# ---------------------------------------------------------------------------
# Model discovery
# ---------------------------------------------------------------------------

def test_list_models_static_lists() -> None:
    gateway = gw.LLMGateway(LLMConfig(openai_models=("gpt-4o", "gpt-4o-mini")))
    assert gateway.list_models("mock") == ["mock-model"]
    assert gateway.list_models("openai") == ["gpt-4o", "gpt-4o-mini"]
    assert gateway.list_models("anthropic") == []


def test_list_models_ollama_reads_tags(monkeypatch) -> None:
    seen = {}

    def fake_request_json(method, url, **kwargs):
        seen["url"] = url
        return {"models": [{"name": "llama3.2"}, {"model": "qwen2"}, {"size": 1}]}

    monkeypatch.setattr(gw, "request_json", fake_request_json)
    gateway = gw.LLMGateway(LLMConfig(ollama_base_url="http://localhost:11434/"))
    assert gateway.list_models("ollama") == ["llama3.2", "qwen2"]
    assert seen["url"] == "http://localhost:11434/api/tags"


def test_list_models_cursor_requires_key_and_sends_bearer(monkeypatch) -> None:
    with pytest.raises(LLMConfigurationError):
        gw.LLMGateway().list_models("cursor")

    seen = {}

    def fake_request_json(method, url, **kwargs):
        seen.update(kwargs, url=url)
        return ["claude-4-sonnet-thinking", {"id": "gpt-5"}]

    monkeypatch.setattr(gw, "request_json", fake_request_json)
    gateway = gw.LLMGateway(LLMConfig(cursor_api_key="key_123"))
    assert gateway.list_models("cursor") == ["claude-4-sonnet-thinking", "gpt-5"]
    assert seen["url"] == "https://api.cursor.com/v0/models"
    assert seen["bearer_token"] == "key_123"
