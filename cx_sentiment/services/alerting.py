"""
Close-the-loop (CTL) alert classification.

Maps an aggregate sentiment score onto the severity levels used by the
ticketing side of the platform. The thresholds match the existing CTL
classifier so sentiment alerts sort alongside NPS/CSAT alerts.
"""

import math
from typing import Any, Optional

from cx_sentiment.models.enums import AlertLevel, ConfidenceTier
from cx_sentiment.models.schemas import SentimentAnalysisResult
from cx_sentiment.services.normalization import is_number


# Inclusive upper bounds, most severe first
ALERT_THRESHOLDS = (
    (-0.7, AlertLevel.CRITICAL),
    (-0.5, AlertLevel.HIGH),
    (-0.3, AlertLevel.MEDIUM),
)

HIGH_CONFIDENCE_THRESHOLD: float = 0.8
MEDIUM_CONFIDENCE_THRESHOLD: float = 0.6

DEFAULT_FLAG_REASON: str = 'Negative sentiment detected'


def get_ctl_alert_level(score: Any) -> Optional[AlertLevel]:
    """
    Determine the CTL alert level for a sentiment score.

    Returns:
        CRITICAL for score <= -0.7, HIGH for <= -0.5, MEDIUM for <= -0.3,
        otherwise None. Non-numeric or NaN input also returns None.
    """
    if not is_number(score) or math.isnan(score):
        return None

    for upper_bound, level in ALERT_THRESHOLDS:
        if score <= upper_bound:
            return level

    return None


def should_trigger_alert(result: Optional[SentimentAnalysisResult]) -> bool:
    """True when the result's aggregate score maps to an alert level."""
    if result is None or result.aggregate is None:
        return False

    return get_ctl_alert_level(result.aggregate.score) is not None


def get_confidence_tier(confidence: float) -> ConfidenceTier:
    if confidence > HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceTier.HIGH
    if confidence > MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def get_flag_reason(result: Optional[SentimentAnalysisResult]) -> str:
    """
    Build the reason text shown on a flagged submission.

    Example:
        "Frustrated sentiment detected (score: -0.62, High confidence)"

    Without a result the fixed fallback "Negative sentiment detected" is used.
    """
    if result is None or result.aggregate is None:
        return DEFAULT_FLAG_REASON

    aggregate = result.aggregate
    emotion = aggregate.emotion.value
    tier = get_confidence_tier(aggregate.confidence)

    return (
        f"{emotion[:1].upper()}{emotion[1:]} sentiment detected "
        f"(score: {aggregate.score:.2f}, {tier.value})"
    )
