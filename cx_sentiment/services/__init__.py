"""
Sentiment Pipeline Services

Each module is one stage of the pipeline and holds no shared mutable state,
so every function here is safe to call concurrently from request handlers.

Services:
- text_extraction: analyzable free-text answers from a submission
- pii: email/phone redaction applied before text leaves the platform
- prompt_builder: deterministic prompt with the fixed output schema
- response_parser: AI reply -> normalized SentimentAnalysisResult (or None)
- normalization: score/confidence clamps
- alerting: CTL alert level, flag decision and flag reason
- ai_client: httpx client for the AI service
- sentiment: single-submission orchestration and persistence

Consumed by the backfill job (cx_sentiment/jobs/) and the API layer
(cx_sentiment/api/).
"""

# =============================================================================
# Pipeline Stages
# =============================================================================

from cx_sentiment.services.text_extraction import (
    extract_text_fields,
    get_field_label,
    MIN_TEXT_LENGTH,
)

from cx_sentiment.services.pii import redact_pii

from cx_sentiment.services.prompt_builder import build_sentiment_prompt

from cx_sentiment.services.normalization import clamp_score, clamp_confidence

from cx_sentiment.services.response_parser import parse_sentiment_response

from cx_sentiment.services.alerting import (
    get_ctl_alert_level,
    should_trigger_alert,
    get_flag_reason,
)

# =============================================================================
# AI Service Client
# =============================================================================

from cx_sentiment.services.ai_client import AIServiceError, SentimentAIClient

# =============================================================================
# Orchestration
# =============================================================================

from cx_sentiment.services.sentiment import (
    analyze_submission,
    build_analysis_payload,
    build_ctl_alert,
    get_record_alert_level,
    load_ai_config,
    persist_analysis,
)


__all__ = [
    'extract_text_fields',
    'get_field_label',
    'MIN_TEXT_LENGTH',
    'redact_pii',
    'build_sentiment_prompt',
    'clamp_score',
    'clamp_confidence',
    'parse_sentiment_response',
    'get_ctl_alert_level',
    'should_trigger_alert',
    'get_flag_reason',
    'AIServiceError',
    'SentimentAIClient',
    'analyze_submission',
    'build_analysis_payload',
    'build_ctl_alert',
    'get_record_alert_level',
    'load_ai_config',
    'persist_analysis',
]
