# core/sanitizers.py
"""
Input sanitization for user-generated text.

Titles, team names, comments and descriptions pass through these
before being stored.
"""
import re
from typing import Optional

from rest_framework.exceptions import ValidationError


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_title(title: Optional[str], max_length: int = 255) -> str:
    """
    Single-line text: titles, team names.
    """
    text = sanitize_text(title, max_length=max_length)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def parse_tags(value) -> list:
    """
    Accepts a list or a comma-separated string. Returns unique, trimmed tags.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple)):
        raise ValidationError({"tags": ["Tags must be a list or a comma-separated string."]})

    tags = []
    for raw in value:
        tag = sanitize_title(str(raw), max_length=50)
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:20]
