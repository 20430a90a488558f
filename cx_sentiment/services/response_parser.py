"""
Sentiment Response Parser

Turns the AI provider's reply into a SentimentAnalysisResult.

Providers are asked for bare JSON but regularly wrap it in prose or code
fences, so the parser slices from the first ``{`` to the last ``}`` before
decoding. After decoding:

1. ``aggregate.score`` must be a number; it is the only mandatory field.
2. Aggregate score/confidence are clamped (confidence defaults to 0.5).
3. Each entry in ``fields`` has whichever of score/confidence it carries
   clamped; missing ones stay missing.
4. ``aggregate.emotion`` is coerced to ``neutral`` when absent or unknown.
   Per-field emotions are kept as given.
5. ``themes``, ``summary``, per-field keywords and any extra keys pass
   through unchanged, whatever their type.

Individual bad values are corrected in place. None is returned only for a
reply that fails decoding or is not an object, a non-object aggregate, or a
non-numeric ``aggregate.score``.
``NaN`` and ``Infinity`` literals are not JSON and fail decoding. The parser
never raises.
"""

import copy
import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from pydantic import ValidationError

from cx_sentiment.models.enums import Emotion
from cx_sentiment.models.schemas import SentimentAnalysisResult
from cx_sentiment.services.normalization import (
    clamp_confidence,
    clamp_score,
    is_number,
)


logger = logging.getLogger(__name__)


def extract_json_text(ai_response: str) -> str:
    """
    Cut the reply down to its outermost ``{...}`` span.

    Text without both braces is returned trimmed and unchanged.
    """
    json_text = ai_response.strip()

    json_start = json_text.find('{')
    json_end = json_text.rfind('}')

    if json_start != -1 and json_end != -1:
        json_text = json_text[json_start:json_end + 1]

    return json_text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _normalize_aggregate(aggregate: Dict[str, Any]) -> None:
    aggregate['score'] = clamp_score(aggregate['score'])
    aggregate['confidence'] = clamp_confidence(aggregate.get('confidence'))

    if aggregate.get('emotion') not in Emotion.values():
        aggregate['emotion'] = Emotion.NEUTRAL.value


def _normalize_fields(fields: Dict[str, Any]) -> None:
    for field in fields.values():
        if not isinstance(field, dict):
            continue
        if 'score' in field:
            field['score'] = clamp_score(field['score'])
        if 'confidence' in field:
            field['confidence'] = clamp_confidence(field['confidence'])


def parse_sentiment_response(ai_response: Any) -> Optional[SentimentAnalysisResult]:
    """
    Parse and validate a sentiment reply from the AI provider.

    Args:
        ai_response: Raw reply text. A JSON object already decoded by the AI
            service (dict) is accepted as well.

    Returns:
        The normalized result, or None if the reply is empty, not a JSON
        object, or missing a numeric ``aggregate.score``.

    Example:
        >>> result = parse_sentiment_response(
        ...     'Here is the analysis:\\n{"aggregate": {"score": 1.7}}\\nEnd'
        ... )
        >>> result.aggregate.score, result.aggregate.emotion.value
        (1.0, 'neutral')
    """
    if isinstance(ai_response, Mapping):
        parsed: Any = copy.deepcopy(dict(ai_response))
    elif isinstance(ai_response, str) and ai_response:
        try:
            parsed = json.loads(
                extract_json_text(ai_response), parse_constant=_reject_constant
            )
        except ValueError as e:
            logger.error(
                f"Failed to parse sentiment response: {e} "
                f"(response length={len(ai_response)})"
            )
            return None
    else:
        logger.error(f"Invalid AI response for sentiment analysis: {type(ai_response).__name__}")
        return None

    if not isinstance(parsed, dict):
        logger.error(f"Invalid sentiment structure: top level is {type(parsed).__name__}")
        return None

    aggregate = parsed.get('aggregate')
    if not isinstance(aggregate, dict) or not is_number(aggregate.get('score')):
        logger.error("Invalid sentiment structure: missing aggregate.score")
        return None

    _normalize_aggregate(aggregate)

    fields = parsed.get('fields')
    if isinstance(fields, dict):
        _normalize_fields(fields)

    try:
        return SentimentAnalysisResult.model_validate(parsed)
    except ValidationError as e:
        logger.error(f"Invalid sentiment structure: {e.error_count()} validation error(s)")
        return None
