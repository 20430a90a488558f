"""
Pydantic models for the CX sentiment backend.

This module provides type-safe data validation and serialization for the
sentiment pipeline: extracted text fields, the normalized sentiment result
returned by the AI provider, the analysis record persisted on a submission,
close-the-loop (CTL) alert rows, and the request/response bodies of the
sentiment router.

Wire names stay camelCase (``fieldName``, ``flagReason``, ``apiKey``) because
the stored ``submissions.analysis`` JSON and the AI service contract are shared
with the JavaScript side of the platform.

The sentiment result models allow extra keys: anything the provider returns
beyond the documented schema is carried through to storage untouched. Use
``to_dict()`` for persistence; it drops sub-fields the provider never sent.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cx_sentiment.models.enums import AlertLevel, Emotion


# =============================================================================
# Extraction
# =============================================================================


class ExtractedTextField(BaseModel):
    """
    One analyzable free-text answer pulled out of a submission.

    ``fieldName`` is the answer key, or ``parent.child`` for a value found one
    level down in a nested answer object. ``text`` is always trimmed and longer
    than 10 characters.
    """
    model_config = ConfigDict(frozen=True)

    fieldName: str = Field(..., description="Answer key, dot-path for nested answers")
    label: str = Field(..., description="Question title or a label derived from fieldName")
    text: str = Field(..., description="Trimmed answer text")


# =============================================================================
# Sentiment Result (AI provider reply, normalized)
# =============================================================================


class SentimentAggregate(BaseModel):
    """
    Overall sentiment for a submission.

    score is clamped to [-1, 1], confidence to [0, 1] and emotion is always a
    member of Emotion by the time this model is built.
    """
    model_config = ConfigDict(
        extra='allow',
        json_schema_extra={
            "example": {"score": -0.62, "emotion": "frustrated", "confidence": 0.85}
        }
    )

    score: float = Field(..., ge=-1.0, le=1.0)
    emotion: Emotion = Emotion.NEUTRAL
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class FieldSentiment(BaseModel):
    """
    Sentiment for a single extracted field, keyed by the same fieldName.

    Every attribute is optional; the provider's omissions are preserved.
    Only score and confidence are corrected (by the parser); emotion and
    keywords are kept exactly as the provider sent them.
    """
    model_config = ConfigDict(extra='allow')

    score: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    emotion: Any = None
    keywords: Any = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class SentimentAnalysisResult(BaseModel):
    """
    Normalized sentiment analysis for one submission.

    Produced only by parse_sentiment_response(). Object entries of ``fields``
    become FieldSentiment; any other ``fields`` shape, ``themes`` and
    ``summary`` are carried as sent.
    """
    model_config = ConfigDict(
        extra='allow',
        json_schema_extra={
            "example": {
                "aggregate": {"score": 0.8, "emotion": "happy", "confidence": 0.9},
                "fields": {"feedback": {"score": 0.8, "confidence": 0.9}},
                "themes": ["service quality"],
                "summary": "Very positive feedback"
            }
        }
    )

    aggregate: SentimentAggregate
    fields: Any = Field(default_factory=dict)
    themes: Any = Field(default_factory=list)
    summary: Any = None

    @field_validator('fields')
    @classmethod
    def field_entries(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {
            name: FieldSentiment.model_validate(entry) if isinstance(entry, dict) else entry
            for name, entry in v.items()
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict containing only what the provider actually sent."""
        return self.model_dump(mode='json', exclude_unset=True)


# =============================================================================
# AI Provider Configuration
# =============================================================================

# Model used for each provider; anything that is not Gemini goes to OpenAI
GEMINI_MODEL: str = 'gemini-1.5-flash'
DEFAULT_MODEL: str = 'gpt-4o-mini'


class AIConfig(BaseModel):
    """
    Provider credentials forwarded to the AI service as ``aiConfig``.

    Built from the single active row of ``ai_providers``.
    """
    provider: str = Field(..., min_length=1)
    apiKey: str = Field(..., min_length=1)
    model: str

    @classmethod
    def from_provider_row(cls, row: Any) -> "AIConfig":
        """
        Build the config from an ai_providers record (asyncpg Record or dict).

        Raises:
            pydantic.ValidationError: If provider or api_key is empty.
        """
        provider = row['provider']
        model = GEMINI_MODEL if provider == 'gemini' else DEFAULT_MODEL
        return cls(provider=provider, apiKey=row['api_key'] or '', model=model)


# =============================================================================
# Persistence
# =============================================================================


class SentimentAnalysisRecord(BaseModel):
    """
    Value written to ``submissions.analysis``.

    ``sentiment`` is the normalized result dict extended with ``flagged`` and
    ``flagReason`` (None when not flagged).
    """
    provider: str
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    )
    sentiment: Dict[str, Any]

    @property
    def flagged(self) -> bool:
        return bool(self.sentiment.get('flagged'))


class CTLAlert(BaseModel):
    """
    Close-the-loop alert row for a negatively scored submission.

    Inserted with ON CONFLICT DO NOTHING, so re-inserting the same
    submission/alert combination is a no-op.
    """
    tenantId: Any
    formId: Any
    submissionId: Any
    alertLevel: AlertLevel
    scoreValue: float
    scoreType: str = 'sentiment_ai'
    sentiment: Optional[str] = None


# =============================================================================
# API Request/Response Models
# =============================================================================


class AnalyzeSentimentRequest(BaseModel):
    """Body of POST /sentiment/analyze."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": {"feedback": "The onboarding call was rushed and nobody followed up."},
                "formDefinition": {"elements": [{"name": "feedback", "title": "Any other comments?"}]}
            }
        }
    )

    data: Optional[Dict[str, Any]] = None
    formDefinition: Optional[Dict[str, Any]] = None


class AnalyzeSentimentResponse(BaseModel):
    """
    Response of the sentiment endpoints.

    ``data`` is None when there was no analyzable text; otherwise it is the
    analysis record (provider, timestamp, sentiment).
    """
    success: bool = True
    message: Optional[str] = None
    outcome: str
    alertLevel: Optional[AlertLevel] = None
    data: Optional[SentimentAnalysisRecord] = None
