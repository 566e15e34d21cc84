"""
honestfit/llm/agent_provider.py

Launch-then-poll provider for background coding agents (Cursor API shape).

Flow:
  1. POST {base}/v0/agents {model, prompt}          -> id | agentId | agent_id
  2. GET  {base}/v0/agents/{id} every poll interval -> status / state / agent.status
     - success statuses end polling
     - failure statuses raise immediately
     - the poll budget is the only cancellation mechanism: exhausting it raises
  3. GET  {base}/v0/agents/{id}/conversation        -> last "assistant" message
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from honestfit import config
from honestfit.errors import LLMProviderError
from honestfit.llm.http import normalize_base_url, request_json
from honestfit.llm.providers import join_text_parts
from honestfit.llm.types import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"completed", "complete", "succeeded", "done"})
FAILURE_STATUSES = frozenset({"failed", "error", "cancelled", "canceled", "stopped"})


def _sleep(seconds: float) -> None:
    time.sleep(seconds)


def _agent_status(raw: Any) -> str:
    if not isinstance(raw, dict):
        return ""
    agent = raw.get("agent") if isinstance(raw.get("agent"), dict) else {}
    value = raw.get("status") or raw.get("state") or agent.get("status") or ""
    return str(value).strip().lower()


def _conversation_messages(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return []
    for key in ("messages", "conversation", "items"):
        value = raw.get(key)
        if isinstance(value, list):
            return [m for m in value if isinstance(m, dict)]
    return []


def extract_assistant_text(raw: Any) -> str:
    assistant = [m for m in _conversation_messages(raw) if str(m.get("role") or "").lower() == "assistant"]
    if not assistant:
        return ""
    return join_text_parts(assistant[-1].get("content"))


class BackgroundAgentProvider:
    def __init__(
            self,
            *,
            api_key: str,
            base_url: str,
            default_model: str,
            poll_interval_seconds: float = config.AGENT_POLL_INTERVAL_SECONDS,
            max_polls: int = config.AGENT_MAX_POLLS,
            timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
            name: str = "cursor",
    ) -> None:
        self.name = name
        self._api_key = api_key
        self._base_url = normalize_base_url(base_url)
        self._default_model = default_model
        self._poll_interval_seconds = poll_interval_seconds
        self._max_polls = max(1, max_polls)
        self._timeout_seconds = timeout_seconds

    def _call(self, method: str, path: str, label: str, payload: Dict[str, Any] | None = None) -> Any:
        return request_json(
            method,
            f"{self._base_url}{path}",
            label=f"{self.name} {label}",
            payload=payload,
            bearer_token=self._api_key,
            timeout_seconds=self._timeout_seconds,
        )

    def generate(self, request: LLMRequest) -> LLMResponse:
        launched = self._call(
            "POST",
            "/v0/agents",
            "launch",
            payload={
                "model": request.model or self._default_model,
                "prompt": f"System:\n{request.system}\n\nUser:\n{request.user}",
            },
        )
        launched = launched if isinstance(launched, dict) else {}
        agent_id = launched.get("id") or launched.get("agentId") or launched.get("agent_id")
        if not agent_id:
            raise LLMProviderError(f"{self.name} launch returned no agent id.")

        self._wait_for_completion(str(agent_id))

        conversation = self._call("GET", f"/v0/agents/{agent_id}/conversation", "conversation")
        text = extract_assistant_text(conversation)
        if not text:
            raise LLMProviderError(f"{self.name} returned no assistant text in conversation.")
        return LLMResponse(text=text, raw=conversation)

    def _wait_for_completion(self, agent_id: str) -> None:
        for attempt in range(self._max_polls):
            status = _agent_status(self._call("GET", f"/v0/agents/{agent_id}", "agent status"))
            if status in SUCCESS_STATUSES:
                logger.debug("%s agent %s finished after %d polls", self.name, agent_id, attempt + 1)
                return
            if status in FAILURE_STATUSES:
                raise LLMProviderError(f"{self.name} agent ended with status: {status}")
            _sleep(self._poll_interval_seconds)

        raise LLMProviderError(f"{self.name} agent did not complete in time.")
