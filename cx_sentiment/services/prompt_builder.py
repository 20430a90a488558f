"""
Sentiment prompt construction.

Renders extracted text fields into the instruction prompt sent to the AI
service. The prompt pins the exact JSON shape the provider must return (parsed
by response_parser), the five scoring bands, and a JSON-only reply rule.

Text is PII-redacted here, per field, immediately before rendering; callers pass
fields exactly as extract_text_fields() produced them.
"""

from typing import Optional, Sequence

from cx_sentiment.models.schemas import ExtractedTextField
from cx_sentiment.services.pii import redact_pii


OUTPUT_SCHEMA: str = """{
  "aggregate": {
    "score": <number between -1.0 and 1.0>,
    "emotion": "<one of: happy, satisfied, frustrated, angry, disappointed, confused, neutral>",
    "confidence": <number between 0.0 and 1.0>
  },
  "fields": {
    "<fieldName>": {
      "score": <number between -1.0 and 1.0>,
      "emotion": "<emotion>",
      "keywords": ["<keyword1>", "<keyword2>"],
      "confidence": <number between 0.0 and 1.0>
    }
  },
  "themes": ["<theme1>", "<theme2>", "<theme3>"],
  "summary": "<brief 1-2 sentence summary of overall sentiment>"
}"""

SCORING_GUIDELINES: str = """Scoring guidelines:
- -1.0 to -0.5: Very negative (angry, furious, terrible experience)
- -0.5 to -0.3: Negative (disappointed, frustrated, dissatisfied)
- -0.3 to 0.3: Neutral (mixed feelings, factual responses)
- 0.3 to 0.5: Positive (satisfied, pleased)
- 0.5 to 1.0: Very positive (delighted, extremely happy)"""

PROMPT_TEMPLATE: str = """Analyze the sentiment of the following survey responses. Return a JSON object with this exact structure:

{schema}

{guidelines}

Survey Responses:
{responses}

Return ONLY the JSON object, no additional text."""


def format_field_entry(position: int, field: ExtractedTextField) -> str:
    """Render one numbered response entry with its redacted, quoted text."""
    return f'{position}. {field.label} ({field.fieldName}):\n"{redact_pii(field.text)}"'


def build_sentiment_prompt(text_fields: Optional[Sequence[ExtractedTextField]]) -> str:
    """
    Build the sentiment analysis prompt for a submission.

    Args:
        text_fields: Fields from extract_text_fields(), in order.

    Returns:
        The full prompt, or an empty string when there are no fields. An empty
        prompt means there is nothing to analyze and the AI call must be skipped.
    """
    if not text_fields:
        return ''

    responses = '\n\n'.join(
        format_field_entry(position, field)
        for position, field in enumerate(text_fields, 1)
    )

    return PROMPT_TEMPLATE.format(
        schema=OUTPUT_SCHEMA,
        guidelines=SCORING_GUIDELINES,
        responses=responses,
    )
