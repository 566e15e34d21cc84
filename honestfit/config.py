# honestfit/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

# --- Providers ---

KNOWN_PROVIDERS: Tuple[str, ...] = ("mock", "openai", "anthropic", "cursor", "ollama")

DEFAULT_PROVIDER = "mock"
DEFAULT_TEMPERATURE = 0.2

# Per-provider model used when neither the request nor LLM_MODEL names one.
DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-6",
    "cursor": "claude-4-sonnet-thinking",
    "ollama": "llama3.2",
}

OPENAI_BASE_URL = "https://api.openai.com/v1"
CURSOR_BASE_URL = "https://api.cursor.com"
OLLAMA_BASE_URL = "http://127.0.0.1:11434"

# --- Networking ---

HTTP_TIMEOUT_SECONDS = 60

# Launch-then-poll agents: one status check per second, 30 checks max.
AGENT_POLL_INTERVAL_SECONDS = 1.0
AGENT_MAX_POLLS = 30

# Error bodies are embedded in exception messages; keep them bounded.
ERROR_BODY_MAX_CHARS = 500

# --- User-Agent ---

USER_AGENT = "HonestFit/0.1"

# --- Assessment guardrails ---

MIN_JOB_DESCRIPTION_CHARS = 40
PROMPT_PREVIEW_CHARS = 200


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _env_str(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _env_str(env, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_csv(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def parse_provider_list(raw: Optional[str]) -> Tuple[str, ...]:
    """
    Parses: "openai, ollama,mock" -> ("openai", "ollama", "mock")
    Unknown names are dropped; order is kept.
    """
    return tuple(p.lower() for p in _parse_csv(raw) if p.lower() in KNOWN_PROVIDERS)


@dataclass(frozen=True)
class LLMConfig:
    """
    Process-wide LLM settings handed to the gateway by the host application.
    Runtime settings from a request override provider/model/temperature.
    """
    provider: str = DEFAULT_PROVIDER
    fallback_providers: Tuple[str, ...] = ()
    model: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE

    openai_api_key: Optional[str] = None
    openai_base_url: str = OPENAI_BASE_URL
    openai_models: Tuple[str, ...] = ()

    anthropic_api_key: Optional[str] = None
    anthropic_models: Tuple[str, ...] = ()

    cursor_api_key: Optional[str] = None
    cursor_base_url: str = CURSOR_BASE_URL

    ollama_base_url: str = OLLAMA_BASE_URL
    ollama_model: Optional[str] = None

    http_timeout_seconds: float = HTTP_TIMEOUT_SECONDS
    agent_poll_interval_seconds: float = AGENT_POLL_INTERVAL_SECONDS
    agent_max_polls: int = AGENT_MAX_POLLS


def load_llm_config(environ: Optional[Mapping[str, str]] = None) -> LLMConfig:
    env = os.environ if environ is None else environ
    return LLMConfig(
        provider=(_env_str(env, "LLM_PROVIDER") or DEFAULT_PROVIDER).lower(),
        fallback_providers=parse_provider_list(env.get("LLM_FALLBACK_PROVIDERS")),
        model=_env_str(env, "LLM_MODEL"),
        temperature=_env_float(env, "LLM_TEMPERATURE", DEFAULT_TEMPERATURE),
        openai_api_key=_env_str(env, "OPENAI_API_KEY"),
        openai_base_url=_env_str(env, "OPENAI_BASE_URL") or OPENAI_BASE_URL,
        openai_models=_parse_csv(env.get("OPENAI_MODELS")),
        anthropic_api_key=_env_str(env, "ANTHROPIC_API_KEY"),
        anthropic_models=_parse_csv(env.get("ANTHROPIC_MODELS")),
        cursor_api_key=_env_str(env, "CURSOR_API_KEY"),
        cursor_base_url=_env_str(env, "CURSOR_BASE_URL") or CURSOR_BASE_URL,
        ollama_base_url=_env_str(env, "OLLAMA_BASE_URL") or OLLAMA_BASE_URL,
        ollama_model=_env_str(env, "OLLAMA_MODEL"),
        http_timeout_seconds=_env_float(env, "HONESTFIT_HTTP_TIMEOUT", HTTP_TIMEOUT_SECONDS),
        agent_max_polls=_env_int(env, "HONESTFIT_AGENT_MAX_POLLS", AGENT_MAX_POLLS),
    )


def llm_configured(config: LLMConfig) -> bool:
    """True when the configured primary provider is something other than the stub."""
    return config.provider != "mock"
