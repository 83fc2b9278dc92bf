# src/core/slug.py
"""Slug normalisation for article storage keys."""

from __future__ import annotations

import re

MAX_SLUG_LENGTH = 50

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]")


def clean_slug(text: str) -> str:
    """Lowercase, trim, drop everything but [a-z0-9], cap at 50 chars.

    >>> clean_slug("  Fed Raises-Rates 2024! ")
    'fedraisesrates2024'
    """
    return _NON_SLUG_CHARS.sub("", text.lower().strip())[:MAX_SLUG_LENGTH]
