"""
Package initialization file for backend models.

Re-exports the enumerations from enums.py and the Pydantic models from
schemas.py so other modules can import them from ``cx_sentiment.models``.

Usage:
    from cx_sentiment.models import (
        Emotion,
        AlertLevel,
        ExtractedTextField,
        SentimentAnalysisResult,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from cx_sentiment.models.enums import (
    Emotion,
    AlertLevel,
    ConfidenceTier,
    SubmissionOutcome,
)


# =============================================================================
# Schemas
# =============================================================================

from cx_sentiment.models.schemas import (
    # Extraction
    ExtractedTextField,
    # Sentiment result
    SentimentAggregate,
    FieldSentiment,
    SentimentAnalysisResult,
    # Provider configuration
    AIConfig,
    # Persistence
    SentimentAnalysisRecord,
    CTLAlert,
    # API
    AnalyzeSentimentRequest,
    AnalyzeSentimentResponse,
)


__all__ = [
    # Enums
    'Emotion',
    'AlertLevel',
    'ConfidenceTier',
    'SubmissionOutcome',
    # Schemas
    'ExtractedTextField',
    'SentimentAggregate',
    'FieldSentiment',
    'SentimentAnalysisResult',
    'AIConfig',
    'SentimentAnalysisRecord',
    'CTLAlert',
    'AnalyzeSentimentRequest',
    'AnalyzeSentimentResponse',
]
