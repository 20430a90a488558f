"""
Enumeration definitions for the CX sentiment backend.

All enums inherit from both `str` and `Enum` so they serialize to their plain
string values in Pydantic models, JSON payloads and SQL parameters, and compare
equal to those strings (``AlertLevel.CRITICAL == 'critical'``).
"""

from enum import Enum


class Emotion(str, Enum):
    """
    Aggregate emotion labels the AI provider may return.

    Any other value reported for the aggregate emotion is coerced to NEUTRAL
    by the response parser. Per-field emotions are not checked against this set.
    """
    HAPPY = "happy"
    SATISFIED = "satisfied"
    FRUSTRATED = "frustrated"
    ANGRY = "angry"
    DISAPPOINTED = "disappointed"
    CONFUSED = "confused"
    NEUTRAL = "neutral"

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


class AlertLevel(str, Enum):
    """
    Close-the-loop alert severity derived from the aggregate sentiment score.

    Thresholds (inclusive, most severe first):
    - CRITICAL: score <= -0.7
    - HIGH: score <= -0.5
    - MEDIUM: score <= -0.3

    Scores above -0.3 produce no alert (represented as None, not a member).
    """
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class ConfidenceTier(str, Enum):
    """Human-readable confidence wording used in flag reasons."""
    HIGH = "High confidence"
    MEDIUM = "Medium confidence"
    LOW = "Low confidence"


class SubmissionOutcome(str, Enum):
    """
    Result of running the pipeline over one submission.

    - SUCCESS: analysis produced (and persisted unless dry-run)
    - SKIPPED: no analyzable text; the AI provider was never called
    - FAILED: the AI call errored or timed out, or its reply was unparseable
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
