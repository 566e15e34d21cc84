"""
honestfit/core/json_extract.py

Best-effort recovery of a JSON value from free-form LLM text.

Candidate order (first successful parse wins):
  1. the full raw text
  2. the body of the first ``` / ```json fenced block
  3. first "{" .. last "}"   (object payloads, e.g. profiles)
  4. first "[" .. last "]"   (array payloads, e.g. requirement lists)
"""
from __future__ import annotations

import json
import re
from typing import Any, List


class _NoJson:
    def __repr__(self) -> str:
        return "NO_JSON"

    def __bool__(self) -> bool:
        return False


# Returned when no candidate parses. Distinct from a parsed JSON `null`.
NO_JSON: Any = _NoJson()

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _bounded(raw: str, opener: str, closer: str) -> str | None:
    first = raw.find(opener)
    last = raw.rfind(closer)
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return None


def json_candidates(raw: str) -> List[str]:
    candidates: List[str] = [raw]

    fenced = _FENCED_RE.search(raw)
    if fenced and fenced.group(1):
        candidates.append(fenced.group(1))

    for opener, closer in (("{", "}"), ("[", "]")):
        span = _bounded(raw, opener, closer)
        if span is not None:
            candidates.append(span)

    return candidates


def extract_json(raw: str) -> Any:
    """Return the first candidate that parses as strict JSON, else NO_JSON."""
    if not raw:
        return NO_JSON
    for candidate in json_candidates(raw):
        try:
            return json.loads(candidate)
        except ValueError:
            # Keep trying candidates.
            continue
    return NO_JSON
