"""
candidates.py — turns raw recognized text into product-name candidates.

OCR output mixes the product name with barcodes, nutrition tables and
legal text. A line is kept only if it is made of Hangul syllables, Latin
letters, digits, whitespace and hyphens; anything with punctuation, symbols
or another script is treated as noise.

Pure-digit lines (e.g. barcodes) pass this filter. That is the literal
character-class rule and is kept as-is.
"""
from __future__ import annotations

import re

# ── Character-range regexes ────────────────────────────────────────────────────
_CANDIDATE_RE  = re.compile(r"^[가-힣a-zA-Z0-9\s\-]+$")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(value: object) -> str:
    """Lowercase and strip all whitespace. Non-string or empty input → ""."""
    if not value or not isinstance(value, str):
        return ""
    return _WHITESPACE_RE.sub("", value).lower()


def extract_candidates(text: str | None) -> list[str]:
    """
    Split recognized text into trimmed lines and keep plausible product names.
    Order is preserved and duplicates are kept.
    """
    if not text:
        return []
    lines = [line.strip() for line in text.split("\n")]
    return [line for line in lines if _CANDIDATE_RE.match(line)]
