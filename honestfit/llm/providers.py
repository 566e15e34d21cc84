"""
honestfit/llm/providers.py

Direct request/response providers: mock stub, OpenAI-compatible chat
completions, Anthropic messages and a local Ollama server.

Every provider exposes `name` and `generate(request) -> LLMResponse` and
raises LLMProviderError on failure. SDK exceptions are re-raised without
their original message chain so API keys cannot leak into error text.
"""
from __future__ import annotations

from typing import Any, Dict, List

import anthropic
import openai

from honestfit import config
from honestfit.errors import LLMProviderError
from honestfit.llm.http import normalize_base_url, request_json, truncated_dump
from honestfit.llm.types import LLMRequest, LLMResponse

_ANTHROPIC_MAX_TOKENS = 2048


def _messages(request: LLMRequest) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": request.system},
        {"role": "user", "content": request.user},
    ]


def _temperature(request: LLMRequest) -> float:
    return request.temperature if request.temperature is not None else config.DEFAULT_TEMPERATURE


def join_text_parts(content: Any) -> str:
    """
    Chat content is either a plain string or a list of parts
    (strings, {"text": ...} dicts or SDK objects with a .text attribute).
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        out: List[str] = []
        for part in content:
            if isinstance(part, str):
                out.append(part)
            elif isinstance(part, dict):
                text = part.get("text")
                out.append(text if isinstance(text, str) else "")
            else:
                text = getattr(part, "text", None)
                out.append(text if isinstance(text, str) else "")
        return "".join(out).strip()
    return ""


class MockProvider:
    """Never fails; echoes a prompt preview so an unconfigured app still runs end to end."""

    def __init__(self, name: str = "mock") -> None:
        self.name = name

    def generate(self, request: LLMRequest) -> LLMResponse:
        preview = request.user[: config.PROMPT_PREVIEW_CHARS]
        return LLMResponse(
            text=f"LLM stub ({self.name}): plug in a real model provider. Prompt preview: {preview}..."
        )


class OpenAICompatibleProvider:
    """POST {base_url}/chat/completions through the openai SDK (any compatible server)."""

    def __init__(
            self,
            *,
            name: str,
            api_key: str,
            base_url: str,
            default_model: str,
            timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.name = name
        self._api_key = api_key
        self._base_url = normalize_base_url(base_url)
        self._default_model = default_model
        self._timeout_seconds = timeout_seconds

    def generate(self, request: LLMRequest) -> LLMResponse:
        client = openai.OpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            max_retries=0,
        )
        try:
            response = client.chat.completions.create(
                model=request.model or self._default_model,
                temperature=_temperature(request),
                messages=_messages(request),
            )
        except openai.APIStatusError as exc:
            raise LLMProviderError(
                f"{self.name} request failed ({exc.status_code}): {truncated_dump(exc.body)}"
            ) from None
        except openai.APIError as exc:
            raise LLMProviderError(f"{self.name} request failed: {type(exc).__name__}") from None

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        text = join_text_parts(content)
        if not text:
            raise LLMProviderError(f"{self.name} returned no text content.")
        return LLMResponse(text=text, raw=response)


class AnthropicProvider:
    def __init__(
            self,
            *,
            api_key: str,
            default_model: str,
            timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.name = "anthropic"
        self._api_key = api_key
        self._default_model = default_model
        self._timeout_seconds = timeout_seconds

    def generate(self, request: LLMRequest) -> LLMResponse:
        client = anthropic.Anthropic(api_key=self._api_key, timeout=self._timeout_seconds, max_retries=0)
        try:
            message = client.messages.create(
                model=request.model or self._default_model,
                max_tokens=_ANTHROPIC_MAX_TOKENS,
                temperature=_temperature(request),
                system=request.system,
                messages=[{"role": "user", "content": request.user}],
            )
        except anthropic.APIStatusError as exc:
            raise LLMProviderError(
                f"anthropic request failed ({exc.status_code}): {truncated_dump(exc.body)}"
            ) from None
        except anthropic.APIError as exc:
            raise LLMProviderError(f"anthropic request failed: {type(exc).__name__}") from None

        text = "".join(block.text for block in message.content if block.type == "text").strip()
        if not text:
            raise LLMProviderError("anthropic returned no text content.")
        return LLMResponse(text=text, raw=message)


class OllamaProvider:
    """POST {base_url}/api/chat with stream disabled; reply text is message.content."""

    def __init__(
            self,
            *,
            base_url: str,
            default_model: str,
            timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.name = "ollama"
        self._base_url = normalize_base_url(base_url)
        self._default_model = default_model
        self._timeout_seconds = timeout_seconds

    def generate(self, request: LLMRequest) -> LLMResponse:
        raw = request_json(
            "POST",
            f"{self._base_url}/api/chat",
            label="ollama request",
            payload={
                "model": request.model or self._default_model,
                "stream": False,
                "options": {"temperature": _temperature(request)},
                "messages": _messages(request),
            },
            timeout_seconds=self._timeout_seconds,
        )
        message = raw.get("message") if isinstance(raw, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise LLMProviderError("ollama returned no text content.")
        return LLMResponse(text=text, raw=raw)
