"""
Markup stripping for aggregated search text.
"""

from __future__ import annotations

import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

# Elements whose text never reaches the search index
_DROPPED_ELEMENTS = ["script", "style", "noscript", "template"]


def strip_markup(text: str, max_length: int = 0) -> str:
    """
    Reduce rich text to plain, single-spaced text.

    Tags are replaced by a space so adjacent blocks stay separate words.
    When `max_length` is positive the result is truncated to that many
    characters. Field values that look like a URL or a file path are plain
    text here, so bs4's locator warning is silenced.
    """
    if not text or not text.strip():
        return ""

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(text, "html.parser")

    for element in soup(_DROPPED_ELEMENTS):
        element.decompose()

    plain = " ".join(soup.get_text(separator=" ").split())

    if max_length > 0 and len(plain) > max_length:
        plain = plain[:max_length].rstrip()

    return plain
