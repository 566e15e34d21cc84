from __future__ import annotations

import json
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from honestfit import config
from honestfit.errors import LLMProviderError


def normalize_base_url(base_url: str) -> str:
    return (base_url or "").rstrip("/")


def _decode_body(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def truncated_dump(body: Any, limit: int = config.ERROR_BODY_MAX_CHARS) -> str:
    return json.dumps(body, ensure_ascii=False, default=str)[:limit]


def request_json(
        method: str,
        url: str,
        *,
        label: str,
        payload: Optional[Dict[str, Any]] = None,
        bearer_token: Optional[str] = None,
        timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
) -> Any:
    """
    Send a JSON request and return the decoded JSON body.

    Raises LLMProviderError on:
    - non-2xx responses: "<label> failed (<status>): <first 500 chars of the JSON dump>"
    - network errors and non-JSON success bodies
    """
    headers = {"User-Agent": config.USER_AGENT, "Accept": "application/json"}
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if bearer_token:
        headers["Authorization"] = f"Bearer {bearer_token}"

    req = Request(url, data=data, headers=headers, method=method)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            raw = resp.read()
    except HTTPError as e:
        body = _decode_body(e.read() or b"")
        raise LLMProviderError(f"{label} failed ({e.code}): {truncated_dump(body)}") from e
    except (URLError, TimeoutError, OSError) as e:
        raise LLMProviderError(f"{label} failed: {e}") from e

    body = _decode_body(raw)
    if isinstance(body, str):
        raise LLMProviderError(f"{label} returned a non-JSON body: {body[:config.ERROR_BODY_MAX_CHARS]}")
    return body
