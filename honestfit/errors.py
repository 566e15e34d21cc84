from __future__ import annotations

from typing import List, Optional


class HonestFitError(Exception):
    """Base class for every error the assessment pipeline raises on purpose."""


class InputValidationError(HonestFitError):
    """Caller input rejected before any LLM call (e.g. job description too short)."""


class ProfileValidationError(InputValidationError):
    """Profile data or profile file is missing required fields or is not valid JSON."""


class LLMConfigurationError(HonestFitError):
    """A named provider is missing a credential or setting. Never retried."""


class LLMProviderError(HonestFitError):
    """A single provider call failed (HTTP status, network, empty content)."""


class AllProvidersFailedError(LLMProviderError):
    """
    Every provider in the chain failed.
    `failures` holds the "<provider>: <message>" entries in the order they were tried.
    """

    def __init__(self, failures: Optional[List[str]] = None) -> None:
        self.failures = list(failures or [])
        super().__init__(f"All LLM providers failed. {' | '.join(self.failures)}")


class MalformedOutputError(HonestFitError):
    """The LLM answered, but no valid structure could be recovered from the text."""
