from __future__ import annotations

import re
from typing import Any, Iterable, List

# NOTE: Shared text helpers. Models and the requirement normalizer
# depend on this module rather than re-implementing cleanup.

_FENCE_OPEN_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_NON_ALNUM_RUN_RE = re.compile(r"[^a-z0-9]+")

SLUG_MAX_CHARS = 48


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def clean_string_list(items: Iterable[Any]) -> List[str]:
    """Keep non-empty strings only, whitespace-normalized, in input order."""
    out: List[str] = []
    for it in items or []:
        if not isinstance(it, str):
            continue
        s = normalize_whitespace(it)
        if s:
            out.append(s)
    return out


def clean_llm_text(text: str) -> str:
    """
    Strip markdown code-fence markers and normalize line endings.
    Inner whitespace is kept: requirement text is the LLM's own wording.
    """
    t = _FENCE_OPEN_RE.sub("", text)
    t = t.replace("\r\n", "\n")
    return t.strip()


def stable_slug(text: str, max_chars: int = SLUG_MAX_CHARS) -> str:
    """
    "Own the marketing site end-to-end!!" -> "own-the-marketing-site-end-to-end"
    Edge hyphens are trimmed before truncation.
    """
    slug = _NON_ALNUM_RUN_RE.sub("-", (text or "").lower()).strip("-")
    return slug[:max_chars]
