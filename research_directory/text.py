"""Text helpers for the opportunity and profile detail views."""

import re
from typing import Any, Optional

from bs4 import BeautifulSoup

from .data.models import normalize_null, to_number
from .engine.dates import parse_date

BLOCK_END_RE = re.compile(r"</(p|div|li|h[1-6]|section|article|tr|td|th)>", re.IGNORECASE)
BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
JAMMED_SENTENCE_RE = re.compile(r"([.!?])([A-Z])")


def strip_html_to_text(html: Optional[str]) -> str:
    """
    Reduce markup to plain text.

    Block boundaries and line breaks become spaces so words from adjacent
    paragraphs don't run together; whitespace is collapsed.
    """
    html = normalize_null(html)
    if not html:
        return ""
    spaced = BREAK_RE.sub(" ", BLOCK_END_RE.sub(" ", str(html)))
    text = BeautifulSoup(spaced, "html.parser").get_text()
    return re.sub(r"\s+", " ", text).strip()


def fix_spacing(text: str) -> str:
    """Insert the missing space in text like ``...year.Next...``."""
    if not text:
        return ""
    return JAMMED_SENTENCE_RE.sub(r"\1 \2", text)


def description_text(description: Optional[str]) -> str:
    return fix_spacing(strip_html_to_text(description))


def format_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_money(value: Any) -> str:
    amount = to_number(value)
    if amount is None:
        return "N/A"
    return f"${amount:,.0f}"
