#!/usr/bin/env python3
"""
Description Normalization and Similarity

Text helpers for fuzzy duplicate detection. OCR and bank statements spell
the same purchase differently ("SUPERMERCADO  EXTRA", "Supermercado Extra
Parcela 2 de 6"), so descriptions are normalized before comparison.
"""

import re
import unicodedata

_PARCELA_MARKER = re.compile(r"parcela\s*(\d+)\s*(?:de|/)\s*(\d+)")
_TRAILING_MARKER = re.compile(r"\(?\s*(\d+)\s*/\s*(\d+)\s*\)?\s*$")
_WHITESPACE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    """Remove combining marks: "Salário" -> "Salario"."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def extract_installment_marker(text: str) -> tuple[int, int] | None:
    """
    Find an installment marker in a description.

    Recognizes "parcela 2 de 6", "parcela 2/6" and a trailing "2/6" or "(2/6)".

    Returns:
        (index, count) or None when the description carries no marker
    """
    lowered = strip_diacritics(text.lower())
    match = _PARCELA_MARKER.search(lowered) or _TRAILING_MARKER.search(lowered)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def normalize_description(text: str) -> str:
    """
    Normalize a description for comparison.

    Lowercases, strips diacritics, removes installment markers and collapses
    whitespace.

    Example:
        normalize_description("  Lojas  Americanas (3/10)") -> "lojas americanas"
    """
    normalized = strip_diacritics(text.lower())
    normalized = _PARCELA_MARKER.sub(" ", normalized)
    normalized = _TRAILING_MARKER.sub(" ", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def _significant_words(text: str) -> set[str]:
    return {word for word in text.split(" ") if len(word) > 2}


def description_similarity(a: str, b: str) -> float:
    """
    Similarity of two normalized descriptions, between 0.0 and 1.0.

    1.0 when equal, 0.9 when one contains the other, otherwise the Jaccard
    index of their word sets (words longer than two characters).
    """
    if a == b:
        return 1.0
    if a and b and (a in b or b in a):
        return 0.9

    words_a = _significant_words(a)
    words_b = _significant_words(b)
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / len(words_a | words_b)
