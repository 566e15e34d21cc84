from .engine import compute_fit
from .scoring import fit_level_for_score, tally_core
from .types import CoreTally

__all__ = ["compute_fit", "fit_level_for_score", "tally_core", "CoreTally"]
