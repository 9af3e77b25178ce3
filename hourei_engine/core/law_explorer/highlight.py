"""
Keyword highlighting on Unicode-normalized text.

Matching runs on an NFKC-normalized, optionally lower-cased copy of the text,
while the markup is applied to the original characters. This lets a
half-width keyword ("12") match full-width digits ("１２") and keeps the
original spelling inside the <mark> tags.
"""

import re
import unicodedata
from typing import Iterable, List, Optional, Tuple

_ASCII_WORD_RE = re.compile(r"[0-9A-Za-z_]")

BOUNDARY_NONE = "none"
BOUNDARY_WORD = "word"


def _normalize_units(text: str, case_sensitive: bool) -> Tuple[List[str], List[Tuple[int, int]]]:
    """
    Split text into normalized single-character units.

    Each unit remembers the (start, end) span of the original character it came from.
    """
    units: List[str] = []
    positions: List[Tuple[int, int]] = []
    for index, char in enumerate(text):
        normalized = unicodedata.normalize("NFKC", char)
        if not case_sensitive:
            normalized = normalized.lower()
        for unit in normalized:
            units.append(unit)
            positions.append((index, index + 1))
    return units, positions


def _normalize_keyword(keyword: str, case_sensitive: bool) -> str:
    normalized = unicodedata.normalize("NFKC", keyword)
    return normalized if case_sensitive else normalized.lower()


def _is_ascii_word_char(unit: Optional[str]) -> bool:
    return bool(unit) and bool(_ASCII_WORD_RE.match(unit))


def _find_spans(
    text: str,
    keyword: str,
    case_sensitive: bool,
    boundary: str,
    max_matches: Optional[int],
) -> List[Tuple[int, int]]:
    """Non-overlapping (start, end) spans of keyword in the original text, left to right."""
    if not text or not keyword or not keyword.strip():
        return []

    normalized_keyword = _normalize_keyword(keyword, case_sensitive)
    if not normalized_keyword:
        return []

    units, positions = _normalize_units(text, case_sensitive)
    normalized_text = "".join(units)
    keyword_length = len(normalized_keyword)
    matches: List[Tuple[int, int]] = []

    index = normalized_text.find(normalized_keyword)
    while index != -1 and (max_matches is None or len(matches) < max_matches):
        next_index = normalized_text.find(normalized_keyword, index + max(keyword_length, 1))

        if boundary == BOUNDARY_WORD:
            before = units[index - 1] if index > 0 else None
            after = units[index + keyword_length] if index + keyword_length < len(units) else None
            if _is_ascii_word_char(before) or _is_ascii_word_char(after):
                index = next_index
                continue

        start = positions[index][0]
        end = positions[index + keyword_length - 1][1]
        previous_end = matches[-1][1] if matches else 0
        if start < end and start >= previous_end:
            matches.append((start, end))
        index = next_index

    return matches


def _render(text: str, spans: List[Tuple[int, int]]) -> str:
    if not spans:
        return text
    pieces = []
    cursor = 0
    for start, end in spans:
        if cursor < start:
            pieces.append(text[cursor:start])
        pieces.append(f"<mark>{text[start:end]}</mark>")
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def highlight_keyword(
    text: str,
    keyword: str,
    case_sensitive: bool = False,
    boundary: str = BOUNDARY_NONE,
    max_matches: Optional[int] = None,
) -> str:
    """
    Wrap every occurrence of keyword in text with <mark></mark>.

    Args:
        text: Source text, returned unchanged when empty or when nothing matches
        keyword: Keyword to look for; blank keywords leave the text unchanged
        case_sensitive: Compare without lower-casing (default False)
        boundary: "word" rejects matches glued to ASCII word characters
        max_matches: Stop after this many matches (default unlimited)

    Returns:
        Text with the matches marked up
    """
    return _render(text, _find_spans(text, keyword, case_sensitive, boundary, max_matches))


def highlight_keywords(
    text: str,
    keywords: Iterable[str],
    case_sensitive: bool = False,
    boundary: str = BOUNDARY_NONE,
    max_matches: Optional[int] = None,
) -> str:
    """
    Mark up several keywords in one pass over the original text.

    Matches are collected for every keyword first; where two overlap, the
    earlier one wins, and the longer one on a tie. max_matches applies per keyword.
    """
    candidates: List[Tuple[int, int]] = []
    for keyword in keywords:
        candidates.extend(_find_spans(text, keyword, case_sensitive, boundary, max_matches))

    spans: List[Tuple[int, int]] = []
    for start, end in sorted(candidates, key=lambda span: (span[0], span[0] - span[1])):
        if spans and start < spans[-1][1]:
            continue
        spans.append((start, end))
    return _render(text, spans)
