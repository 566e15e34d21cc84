"""
honestfit/llm/gateway.py

Uniform entry point to the configured LLM backends.

- provider table keyed by name (no inheritance between providers)
- runtime settings override the host's LLMConfig; unknown names fall back to "mock"
- sequential failover: primary first, then fallbacks in configured order
- every failure is collected; only the aggregate is raised
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from honestfit import config as _config
from honestfit.config import LLMConfig
from honestfit.errors import AllProvidersFailedError, LLMConfigurationError, MalformedOutputError
from honestfit.core.json_extract import NO_JSON, extract_json
from honestfit.llm.agent_provider import BackgroundAgentProvider
from honestfit.llm.http import normalize_base_url, request_json
from honestfit.llm.providers import AnthropicProvider, MockProvider, OllamaProvider, OpenAICompatibleProvider
from honestfit.llm.types import LLMProvider, LLMRequest, LLMRuntimeSettings, ProviderChain

logger = logging.getLogger(__name__)


def provider_name(value: Optional[str]) -> str:
    name = (value or "").strip().lower()
    return name if name in _config.KNOWN_PROVIDERS else "mock"


def _default_model(cfg: LLMConfig, provider: str) -> str:
    return cfg.model or _config.DEFAULT_MODELS[provider]


def _create_mock(cfg: LLMConfig) -> LLMProvider:
    return MockProvider("mock")


def _create_openai(cfg: LLMConfig) -> LLMProvider:
    if not cfg.openai_api_key:
        raise LLMConfigurationError("Missing OPENAI_API_KEY for LLM_PROVIDER=openai.")
    return OpenAICompatibleProvider(
        name="openai",
        api_key=cfg.openai_api_key,
        base_url=cfg.openai_base_url,
        default_model=_default_model(cfg, "openai"),
        timeout_seconds=cfg.http_timeout_seconds,
    )


def _create_anthropic(cfg: LLMConfig) -> LLMProvider:
    if not cfg.anthropic_api_key:
        raise LLMConfigurationError("Missing ANTHROPIC_API_KEY for LLM_PROVIDER=anthropic.")
    return AnthropicProvider(
        api_key=cfg.anthropic_api_key,
        default_model=_default_model(cfg, "anthropic"),
        timeout_seconds=cfg.http_timeout_seconds,
    )


def _create_cursor(cfg: LLMConfig) -> LLMProvider:
    if not cfg.cursor_api_key:
        raise LLMConfigurationError("Missing CURSOR_API_KEY for LLM_PROVIDER=cursor.")
    return BackgroundAgentProvider(
        api_key=cfg.cursor_api_key,
        base_url=cfg.cursor_base_url,
        default_model=_default_model(cfg, "cursor"),
        poll_interval_seconds=cfg.agent_poll_interval_seconds,
        max_polls=cfg.agent_max_polls,
        timeout_seconds=cfg.http_timeout_seconds,
    )


def _create_ollama(cfg: LLMConfig) -> LLMProvider:
    return OllamaProvider(
        base_url=cfg.ollama_base_url,
        default_model=cfg.ollama_model or _default_model(cfg, "ollama"),
        timeout_seconds=cfg.http_timeout_seconds,
    )


PROVIDER_FACTORIES: Dict[str, Callable[[LLMConfig], LLMProvider]] = {
    "mock": _create_mock,
    "openai": _create_openai,
    "anthropic": _create_anthropic,
    "cursor": _create_cursor,
    "ollama": _create_ollama,
}


def call_with_providers(request: LLMRequest, chain: ProviderChain) -> str:
    failures: List[str] = []
    for provider in chain.ordered():
        try:
            return provider.generate(request).text
        except Exception as exc:
            failures.append(f"{provider.name}: {exc}")
            logger.warning("LLM provider %s failed: %s", provider.name, exc)
    raise AllProvidersFailedError(failures)


def normalize_model_list(raw: Any) -> List[str]:
    """Accepts a bare list or {"models": [...]}; items are names or objects with id/name/display_name/model."""
    items = raw
    if isinstance(raw, dict):
        items = raw.get("models")
    if not isinstance(items, list):
        return []

    out: List[str] = []
    for item in items:
        if isinstance(item, str):
            name = item
        elif isinstance(item, dict):
            name = next(
                (item[k] for k in ("id", "name", "display_name", "model") if isinstance(item.get(k), str) and item[k]),
                "",
            )
        else:
            name = ""
        if name:
            out.append(name)
    return out


class LLMGateway:
    """
    Holds the host-supplied LLMConfig; the core never reads the environment.
    One gateway can serve many concurrent assessments: it keeps no per-call state.
    """

    def __init__(
            self,
            config: Optional[LLMConfig] = None,
            *,
            factories: Optional[Dict[str, Callable[[LLMConfig], LLMProvider]]] = None,
    ) -> None:
        self.config = config or LLMConfig()
        self._factories = dict(PROVIDER_FACTORIES)
        if factories:
            self._factories.update(factories)

    def create_provider(self, name: str) -> LLMProvider:
        return self._factories[provider_name(name)](self.config)

    def resolve(self, settings: Optional[LLMRuntimeSettings] = None) -> ProviderChain:
        settings = settings or LLMRuntimeSettings()
        primary = provider_name(settings.provider or self.config.provider)
        fallback_names = (
            settings.fallback_providers
            if settings.fallback_providers is not None
            else self.config.fallback_providers
        )
        fallbacks = [provider_name(n) for n in fallback_names]
        return ProviderChain(
            primary=self.create_provider(primary),
            fallbacks=[self.create_provider(n) for n in fallbacks if n != primary],
        )

    def build_request(self, system: str, user: str, settings: Optional[LLMRuntimeSettings] = None) -> LLMRequest:
        settings = settings or LLMRuntimeSettings()
        return LLMRequest(
            system=system,
            user=user,
            model=settings.model or self.config.model,
            temperature=settings.temperature if settings.temperature is not None else self.config.temperature,
        )

    def generate_text(self, system: str, user: str, settings: Optional[LLMRuntimeSettings] = None) -> str:
        preview = _config.PROMPT_PREVIEW_CHARS
        logger.info("LLM system prompt: %s...", system[:preview])
        logger.info("LLM user prompt: %s...", user[:preview])

        chain = self.resolve(settings)
        return call_with_providers(self.build_request(system, user, settings), chain)

    def generate_json(
            self,
            system: str,
            user: str,
            *,
            parse: Callable[[Any], Any],
            settings: Optional[LLMRuntimeSettings] = None,
            error_message: str = "LLM did not return valid JSON.",
    ) -> tuple[Any, str]:
        """
        Returns (parsed value, raw text). `parse` validates the extracted JSON
        and returns None when it is unusable.
        """
        raw = self.generate_text(system, user, settings)
        value = extract_json(raw)
        if value is NO_JSON:
            raise MalformedOutputError(error_message)
        parsed = parse(value)
        if parsed is None:
            raise MalformedOutputError(error_message)
        return parsed, raw

    def list_models(self, provider: str) -> List[str]:
        name = provider_name(provider)
        cfg = self.config
        if name == "mock":
            return ["mock-model"]
        if name == "openai":
            return list(cfg.openai_models)
        if name == "anthropic":
            return list(cfg.anthropic_models)
        if name == "ollama":
            raw = request_json(
                "GET",
                f"{normalize_base_url(cfg.ollama_base_url)}/api/tags",
                label="ollama model list",
                timeout_seconds=cfg.http_timeout_seconds,
            )
            return normalize_model_list(raw)

        if not cfg.cursor_api_key:
            raise LLMConfigurationError("Missing CURSOR_API_KEY for provider model discovery.")
        raw = request_json(
            "GET",
            f"{normalize_base_url(cfg.cursor_base_url)}/v0/models",
            label="cursor model list",
            bearer_token=cfg.cursor_api_key,
            timeout_seconds=cfg.http_timeout_seconds,
        )
        return normalize_model_list(raw)
