"""
Input sanitization and validation helpers for public forms.
"""

from __future__ import annotations

import html
import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_string(value: Optional[str], max_length: int = 255) -> str:
    """
    Trim, truncate, drop control characters and HTML-escape a string.

    ``&``, ``<``, ``>``, quotes and ``/`` are escaped so the value is safe to
    embed in HTML email bodies.
    """
    if not value or not isinstance(value, str):
        return ""
    cleaned = _CONTROL_CHARS.sub("", value.strip()[:max_length])
    return html.escape(cleaned, quote=True).replace("/", "&#x2F;")


def sanitize_email(value: Optional[str]) -> str:
    if not value or not isinstance(value, str):
        return ""
    return _CONTROL_CHARS.sub("", value.strip().lower()[:255])


def sanitize_slug(value: Optional[str], max_length: int = 50) -> str:
    """Lowercase, keep ``[a-z0-9-]``, collapse repeated hyphens and trim edge hyphens."""
    if not value or not isinstance(value, str):
        return ""
    slug = re.sub(r"[^a-z0-9-]", "", value.strip().lower())
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:max_length]


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))
