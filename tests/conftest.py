import json
from pathlib import Path
import pytest

from honestfit.models import CandidateProfile

# Path to tests/fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """
    Exposes the fixtures directory in case a test needs direct file access.
    """
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """
    Fixture that returns a function: load_text("file.ext") -> str
    This avoids repeating file reading logic in every test file.
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    Fixture that returns a function: load_json("file.json") -> dict
    Built on load_text so there's one source of truth for file IO.
    """
    def _load(name: str) -> dict:
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def demo_profile(load_json) -> CandidateProfile:
    """Fully populated profile: every derived fact fires for it."""
    return CandidateProfile.from_dict(load_json("profile_demo.json"))


@pytest.fixture
def minimal_profile() -> CandidateProfile:
    return CandidateProfile(
        name="Sam Lee",
        headline="Engineer",
        summary="Builds internal tools.",
    )
