from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from honestfit.models import FitLevel, FitResult

logger = logging.getLogger(__name__)

MAX_RECENT_ROLES = 5
LABEL_MAX_CHARS = 80

_FIT_LABELS = {
    FitLevel.STRONG: "Strong fit",
    FitLevel.MODERATE: "Moderate fit",
    FitLevel.WEAK: "Weak fit",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RecentRole:
    """One past assessment, keyed by its (trimmed) job description."""
    id: str
    label: str
    job_description: str
    fit: FitResult
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "jobDescription": self.job_description,
            "fit": self.fit.to_dict(),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecentRole":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            job_description=str(data["jobDescription"]),
            fit=FitResult.from_dict(data["fit"]),
            created_at=str(data.get("createdAt", "")),
        )


def create_role_label(job_description: str) -> str:
    lines = [line.strip() for line in (job_description or "").split("\n") if line.strip()]
    if not lines:
        return "Untitled role"
    first = lines[0]
    if len(first) > LABEL_MAX_CHARS:
        return f"{first[: LABEL_MAX_CHARS - 3]}..."
    return first


def display_label(role: RecentRole, *, demo_mode: bool = False, index: int = 0) -> str:
    """Demo mode hides the real label behind "Role #n (<fit>)"."""
    if not demo_mode:
        return role.label
    fit_label = _FIT_LABELS.get(role.fit.fit if role.fit else None, "Fit unknown")
    return f"Role #{index + 1} ({fit_label})"


def add_recent_role(
        roles: Sequence[RecentRole],
        *,
        label: str,
        job_description: str,
        fit: FitResult,
        now: Optional[datetime] = None,
) -> List[RecentRole]:
    """
    Prepend a new record, drop older records with the same trimmed job
    description, and keep at most MAX_RECENT_ROLES. Returns a new list.
    """
    created_at = (now or utc_now()).isoformat()
    entry = RecentRole(
        id=f"{created_at}-{uuid.uuid4().hex[:6]}",
        label=label,
        job_description=job_description,
        fit=fit,
        created_at=created_at,
    )
    key = job_description.strip()
    kept = [r for r in roles if r.job_description.strip() != key]
    return [entry, *kept][:MAX_RECENT_ROLES]


def _best_effort_lockdown_file_permissions(path: Path) -> None:
    """
    Best-effort privacy: on Unix, set 600. On Windows, no-op.
    """
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


class RecentRolesRepository(Protocol):
    def load(self) -> List[RecentRole]:
        ...

    def save(self, roles: Sequence[RecentRole]) -> None:
        ...


class JsonRecentRolesRepository:
    """
    Local JSON persistence.

    Layout:
      <base_dir>/
        recent_roles.json -> [ {RecentRole...}, ... ]   (newest first)
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.path = base_dir / "recent_roles.json"

    def load(self) -> List[RecentRole]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            if not isinstance(data, list):
                return []
            return [RecentRole.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            # A corrupt store must not block an assessment.
            logger.warning("Ignoring unreadable recent roles file %s: %s", self.path, exc)
            return []

    def save(self, roles: Sequence[RecentRole]) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        payload = [r.to_dict() for r in roles]
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        _best_effort_lockdown_file_permissions(self.path)

    def record(self, *, job_description: str, fit: FitResult) -> List[RecentRole]:
        roles = add_recent_role(
            self.load(),
            label=create_role_label(job_description),
            job_description=job_description,
            fit=fit,
        )
        self.save(roles)
        return roles


def default_repo_dir() -> Path:
    return Path(".honestfit")
