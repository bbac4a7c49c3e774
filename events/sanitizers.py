# events/sanitizers.py
"""
Input sanitization and normalization for participation data.

User-typed text (team names, member names, feedback opinions) passes
through these functions before it is stored. The *_key helpers produce
the comparison forms the uniqueness constraints are built on.
"""
import html
import re
from typing import Optional

import bleach


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes all markup
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    if strip:
        text = text.strip()

    # bleach escapes what it keeps; stored text is plain, not HTML
    text = html.unescape(bleach.clean(text, tags=[], attributes={}, strip=True))

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_single_line(text: Optional[str], max_length: int) -> str:
    """
    Names and titles: no markup, no newlines, collapsed whitespace.
    """
    text = sanitize_text(text, max_length=max_length)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def sanitize_team_name(name: Optional[str]) -> str:
    return sanitize_single_line(name, max_length=100)


def sanitize_member_name(name: Optional[str]) -> str:
    return sanitize_single_line(name, max_length=150)


def sanitize_opinion(opinion: Optional[str]) -> str:
    return sanitize_text(opinion, max_length=5000)


def team_name_key(name: Optional[str]) -> str:
    """'Falcons' and ' falcons ' compare equal."""
    return (name or "").strip().lower()


def roll_no_key(roll_no: Optional[str]) -> str:
    return (roll_no or "").strip().upper()
