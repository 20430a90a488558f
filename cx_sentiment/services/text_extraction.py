"""
Text Field Extraction Service

Walks a submission's answer map and returns the free-text answers worth sending
to the AI provider.

Answer values arrive in three shapes:
- a raw scalar (``"Great support"``, ``5``, ``True``)
- a SurveyJS wrapper object (``{"value": ..., "text": ...}``), unwrapped to ``value``
- a nested object of scalars for multi-part questions (``{"message": ...}``),
  searched exactly one level deep

Only strings whose trimmed length exceeds MIN_TEXT_LENGTH are kept. Shorter
strings, numbers, booleans and lists are dropped silently: they are ratings,
choices or one-word answers with no sentiment signal, not errors.
"""

import re
from collections.abc import Mapping
from typing import Any, List, Optional

from cx_sentiment.models.schemas import ExtractedTextField


# Answers must be strictly longer than this after trimming
MIN_TEXT_LENGTH: int = 10

_SEPARATOR_PATTERN = re.compile(r'[_-]')
_CAMEL_BOUNDARY_PATTERN = re.compile(r'([A-Z])')


def get_field_label(field_name: str, form_definition: Optional[Mapping] = None) -> str:
    """
    Resolve a human-readable label for an answer key.

    The first form element whose ``name`` equals ``field_name`` supplies its
    ``title``. Without a titled match the label is synthesized from the key:
    underscores and hyphens become spaces, a space is inserted before each
    capital letter, and every word is capitalized.

    Examples:
        >>> get_field_label('overall_experience')
        'Overall Experience'
        >>> get_field_label('whatCouldImprove')
        'What Could Improve'
    """
    if isinstance(form_definition, Mapping):
        for element in form_definition.get('elements') or []:
            if isinstance(element, Mapping) and element.get('name') == field_name:
                if element.get('title'):
                    return element['title']
                break

    label = _SEPARATOR_PATTERN.sub(' ', field_name)
    label = _CAMEL_BOUNDARY_PATTERN.sub(r' \1', label).strip()

    return ' '.join(word[:1].upper() + word[1:].lower() for word in label.split(' '))


def _unwrap_answer(raw_value: Any) -> Any:
    """Replace a SurveyJS ``{"value": ...}`` wrapper with its value."""
    if isinstance(raw_value, Mapping) and 'value' in raw_value:
        return raw_value['value']
    return raw_value


def _is_analyzable(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > MIN_TEXT_LENGTH


def extract_text_fields(
    data: Optional[Mapping],
    form_definition: Optional[Mapping] = None
) -> List[ExtractedTextField]:
    """
    Extract analyzable text fields from a submission's answers.

    Args:
        data: The submission answer map. None, an empty map or a non-mapping
            value yields an empty list.
        form_definition: Optional form definition; only ``elements[].name`` and
            ``elements[].title`` are read, for label lookup.

    Returns:
        Fields in the iteration order of ``data``. A nested answer is emitted
        after any top-level match for the same key, named ``parent.child``.
    """
    if not isinstance(data, Mapping):
        return []

    text_fields: List[ExtractedTextField] = []

    for field_name, raw_value in data.items():
        value = _unwrap_answer(raw_value)

        if _is_analyzable(value):
            text_fields.append(ExtractedTextField(
                fieldName=field_name,
                label=get_field_label(field_name, form_definition),
                text=value.strip(),
            ))

        # Multi-part questions: one level only
        if isinstance(value, Mapping):
            for nested_key, nested_value in value.items():
                if _is_analyzable(nested_value):
                    nested_name = f"{field_name}.{nested_key}"
                    text_fields.append(ExtractedTextField(
                        fieldName=nested_name,
                        label=get_field_label(nested_name, form_definition),
                        text=nested_value.strip(),
                    ))

    return text_fields
