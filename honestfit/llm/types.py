from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Tuple

from honestfit.config import KNOWN_PROVIDERS, parse_provider_list


@dataclass(frozen=True)
class LLMRequest:
    system: str
    user: str
    model: Optional[str] = None
    temperature: Optional[float] = None


@dataclass(frozen=True)
class LLMResponse:
    text: str
    raw: Any = None


class LLMProvider(Protocol):
    """Capability interface: anything with a name that turns a request into text."""

    name: str

    def generate(self, request: LLMRequest) -> LLMResponse:
        ...


@dataclass(frozen=True)
class ProviderChain:
    primary: LLMProvider
    fallbacks: List[LLMProvider] = field(default_factory=list)

    def ordered(self) -> List[LLMProvider]:
        return [self.primary, *self.fallbacks]


def _provider_or_none(value: Any) -> Optional[str]:
    """
    Blank means "use the host config". Any other string is kept as given:
    the gateway resolves unrecognised names to "mock".
    """
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass(frozen=True)
class LLMRuntimeSettings:
    """
    Per-request overrides sent by a UI or API caller.
    None means "use the host's LLMConfig value".
    """
    provider: Optional[str] = None
    fallback_providers: Optional[Tuple[str, ...]] = None
    model: Optional[str] = None
    temperature: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LLMRuntimeSettings":
        """Accepts the camelCase payload: {provider, fallbackProviders, model, temperature}."""
        if not data:
            return cls()
        fallbacks = data.get("fallbackProviders")
        temperature = data.get("temperature")
        model = data.get("model")
        return cls(
            provider=_provider_or_none(data.get("provider")),
            fallback_providers=(
                tuple(p for p in fallbacks if p in KNOWN_PROVIDERS) if isinstance(fallbacks, list) else None
            ),
            model=(model.strip() or None) if isinstance(model, str) else None,
            temperature=(
                float(temperature)
                if isinstance(temperature, (int, float)) and not isinstance(temperature, bool)
                else None
            ),
        )


def runtime_settings_from_ui(
        *,
        provider: str,
        model: str = "",
        temperature: str = "",
        fallback_providers_csv: str = "",
) -> LLMRuntimeSettings:
    """
    Convert the settings form's raw string fields.
    Blank model -> None; unparsable temperature -> None; unknown fallbacks dropped.
    """
    try:
        temp: Optional[float] = float(temperature)
    except (TypeError, ValueError):
        temp = None
    if temp is not None and not math.isfinite(temp):
        temp = None
    return LLMRuntimeSettings(
        provider=_provider_or_none(provider),
        fallback_providers=parse_provider_list(fallback_providers_csv),
        model=(model or "").strip() or None,
        temperature=temp,
    )
