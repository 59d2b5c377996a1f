"""
PII redaction for anything that crosses the logging boundary.

Every component that logs tool parameters, contact details or message
text routes them through these helpers first:

    from utils.redaction import describe_text, redact_parameters
    logger.info(f"create_matter params={redact_parameters(params)}")
    logger.info(f"message {describe_text(message)}")
"""

import re
from typing import Any

SENSITIVE_KEYS = frozenset(
    {
        "name",
        "client_name",
        "email",
        "phone",
        "address",
        "location",
        "ssn",
        "social_security",
        "date_of_birth",
        "dob",
        "description",
        "details",
        "notes",
        "message",
        "content",
        "opposing_party",
        "specific_question",
        "password",
        "token",
        "secret",
        "api_key",
    }
)

MAX_DEPTH = 10
MAX_VALUE_LENGTH = 200
REDACTED = "***REDACTED***"

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?\b\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")


def mask_email(email: str) -> str:
    """Keep the first two characters of the local part and the domain."""
    local, _, domain = email.partition("@")
    if not domain:
        return mask_value(email)
    return f"{local[:2]}***@{domain}"


def mask_value(value: Any) -> str:
    """Mask a single sensitive value.

    Emails keep their domain, other strings longer than four characters
    keep two characters at each end, anything else is fully redacted.
    """
    if not isinstance(value, str):
        return REDACTED
    if _EMAIL_RE.fullmatch(value.strip()):
        return mask_email(value.strip())
    if len(value) > 4:
        return f"{value[:2]}***{value[-2:]}"
    return REDACTED


def truncate(value: str, limit: int = MAX_VALUE_LENGTH) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + "..."


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered in SENSITIVE_KEYS or any(s in lowered for s in ("email", "phone", "password", "secret"))


def redact_parameters(params: Any, _depth: int = 0) -> Any:
    """Return a copy of params with sensitive values masked.

    Walks nested dicts and lists up to MAX_DEPTH levels; deeper structures
    are replaced wholesale. Long non-sensitive strings are truncated.
    """
    if _depth > MAX_DEPTH:
        return "[max depth exceeded]"

    if isinstance(params, dict):
        redacted = {}
        for key, value in params.items():
            if _is_sensitive(str(key)) and value is not None and not isinstance(value, (dict, list)):
                redacted[key] = mask_value(value)
            else:
                redacted[key] = redact_parameters(value, _depth + 1)
        return redacted

    if isinstance(params, (list, tuple)):
        return [redact_parameters(item, _depth + 1) for item in params]

    if isinstance(params, str):
        return truncate(redact_text(params))

    return params


def redact_text(text: str) -> str:
    """Mask emails and phone numbers embedded in free text."""
    if not text:
        return text
    text = _EMAIL_RE.sub(lambda m: mask_email(m.group(0)), text)
    return _PHONE_RE.sub(lambda m: mask_value(m.group(0)), text)


def describe_text(text: str) -> str:
    """Shape of user text for log lines; none of the content is kept."""
    text = text or ""
    return f"<{len(text)} chars, {len(text.split())} words>"
