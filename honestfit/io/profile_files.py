from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from honestfit.errors import ProfileValidationError
from honestfit.models import CandidateProfile

CANDIDATE_PROFILE_SCHEMA_VERSION = "candidateProfile.v1"


def export_profile_to_json(profile: CandidateProfile, *, exported_at: Optional[datetime] = None) -> str:
    """Wrap a profile in the versioned export envelope."""
    when = exported_at or datetime.now(timezone.utc)
    payload = {
        "schemaVersion": CANDIDATE_PROFILE_SCHEMA_VERSION,
        "exportedAt": when.isoformat(),
        "profile": profile.to_dict(),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _profile_from(data: Any, error_message: str) -> CandidateProfile:
    if not isinstance(data, dict):
        raise ProfileValidationError(error_message)
    try:
        return CandidateProfile.from_dict(data)
    except ProfileValidationError as exc:
        raise ProfileValidationError(f"{error_message} {exc}") from exc


def parse_exported_profile_json(text: str) -> CandidateProfile:
    try:
        parsed = json.loads(text)
    except ValueError:
        raise ProfileValidationError("Invalid JSON file. Could not parse.") from None

    if not isinstance(parsed, dict) or parsed.get("schemaVersion") != CANDIDATE_PROFILE_SCHEMA_VERSION:
        raise ProfileValidationError(
            f'Unsupported profile file. Expected schemaVersion "{CANDIDATE_PROFILE_SCHEMA_VERSION}".'
        )
    if not isinstance(parsed.get("exportedAt"), str):
        raise ProfileValidationError("Invalid profile file contents. Please check required fields.")

    return _profile_from(
        parsed.get("profile"),
        "Invalid profile file contents. Please check required fields.",
    )


def load_profile_file(path: Path) -> CandidateProfile:
    """
    Load a profile for CLI usage.
    Accepts the export envelope ({schemaVersion, exportedAt, profile}) or a bare profile object.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileValidationError(f"Could not read profile file {path}: {exc.strerror}") from exc

    try:
        parsed = json.loads(text)
    except ValueError:
        raise ProfileValidationError("Invalid JSON file. Could not parse.") from None

    if isinstance(parsed, dict) and "schemaVersion" in parsed:
        return parse_exported_profile_json(text)
    return _profile_from(parsed, "Invalid profile contents.")
