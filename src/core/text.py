# src/core/text.py
"""Text helpers shared by both orchestrators."""

from __future__ import annotations


def ensure_verbatim_opening(article: str, opening: str) -> str:
    """Return article guaranteed to start with opening, byte for byte.

    Step output that already begins with the source text is returned as is;
    otherwise the source text is prepended as its own paragraph.
    """
    if not opening or article.startswith(opening):
        return article
    if not article:
        return opening
    return f"{opening}\n\n{article}"
