"""
Numeric normalization helpers shared by the response parser and alerting.

The two clamps deliberately disagree on their fallback: a missing score means
"neutral" (0.0) while a missing confidence means "unknown", reported as medium
(0.5).
"""

import math
from typing import Any


SCORE_MIN: float = -1.0
SCORE_MAX: float = 1.0
CONFIDENCE_MIN: float = 0.0
CONFIDENCE_MAX: float = 1.0

DEFAULT_SCORE: float = 0.0
DEFAULT_CONFIDENCE: float = 0.5


def is_number(value: Any) -> bool:
    """True for real ints and floats (NaN included); bools are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_usable(value: Any) -> bool:
    return is_number(value) and not math.isnan(value)


def clamp_score(score: Any) -> float:
    """Clamp a sentiment score to [-1, 1]; non-numeric or NaN becomes 0."""
    if not _is_usable(score):
        return DEFAULT_SCORE
    return max(SCORE_MIN, min(SCORE_MAX, score))


def clamp_confidence(confidence: Any) -> float:
    """Clamp a confidence to [0, 1]; non-numeric or NaN becomes 0.5."""
    if not _is_usable(confidence):
        return DEFAULT_CONFIDENCE
    return max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, confidence))
