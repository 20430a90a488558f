"""
PII redaction applied to survey text before it leaves the platform.

Best-effort only: email addresses and phone-number-like digit runs are
replaced. Names, postal addresses and most international phone layouts are
not detected.

Emails are redacted before phones so the phone patterns never see digits that
belong to an email address.
"""

import re
from typing import Optional


EMAIL_PLACEHOLDER: str = '[EMAIL]'
PHONE_PLACEHOLDER: str = '[PHONE]'

# ASCII semantics for \b, \d and \s; Unicode digits are left alone
_EMAIL_PATTERN = re.compile(
    r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b',
    re.ASCII,
)

# Optional country code, optional parentheses, -, . or whitespace separators
_PHONE_PATTERN = re.compile(
    r'\b(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b',
    re.ASCII,
)

# Any remaining run of 10+ digits
_LONG_DIGIT_RUN_PATTERN = re.compile(r'\b\d{10,}\b', re.ASCII)


def redact_pii(text: Optional[str]) -> Optional[str]:
    """
    Replace emails with [EMAIL] and phone numbers with [PHONE].

    Idempotent. None, empty strings and non-string values are returned as-is.

    Example:
        >>> redact_pii('Contact me at john.doe@example.com for more info')
        'Contact me at [EMAIL] for more info'
    """
    if not text or not isinstance(text, str):
        return text

    redacted = _EMAIL_PATTERN.sub(EMAIL_PLACEHOLDER, text)
    redacted = _PHONE_PATTERN.sub(PHONE_PLACEHOLDER, redacted)
    redacted = _LONG_DIGIT_RUN_PATTERN.sub(PHONE_PLACEHOLDER, redacted)

    return redacted
