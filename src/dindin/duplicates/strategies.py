#!/usr/bin/env python3
"""
Duplicate Detection Strategies

Two strategies behind one interface, deliberately not unified:

- StrictDuplicateStrategy: exact (descricao, valor, calendar day) key match
  for re-imports of previously exported data.
- FuzzyDuplicateStrategy: tolerance-based match for loosely structured input
  such as OCR-extracted candidates.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from ..core.config import FuzzyMatchConfig
from ..core.currency import safe_to_cents
from ..core.dates import FinancialDate
from ..core.errors import StructuralError
from ..core.json_utils import js_number
from ..core.models import TransactionType
from .normalize import description_similarity, extract_installment_marker, normalize_description

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


class MatchStrategy(Enum):
    """Available duplicate detection strategies"""

    STRICT = "strict"
    FUZZY = "fuzzy"


class DuplicateStrategy(Protocol):
    """Interface shared by both duplicate detection strategies."""

    strategy: MatchStrategy

    def find_duplicates(self, candidates: Sequence[Row], existing: Sequence[Row]) -> dict[int, Row]:
        """
        Find candidates that duplicate an existing record.

        Returns:
            Mapping of candidate index to the existing row it duplicates
        """
        ...


def strict_key(row: Row) -> str:
    """
    Build the exact-match key "descricao|valor|YYYY-MM-DD".

    No normalization is applied; numbers render as JavaScript would so keys
    built from JSON-decoded rows match keys built by the web application.
    """
    valor = row.get("valor")
    if isinstance(valor, (int, float)) and not isinstance(valor, bool):
        valor_text = js_number(valor)
    else:
        valor_text = "" if valor is None else str(valor)
    date_prefix = str(row.get("data") or "")[:10]
    return f"{row.get('descricao')}|{valor_text}|{date_prefix}"


class StrictDuplicateStrategy:
    """Exact-key duplicate detection for the bulk import path."""

    strategy = MatchStrategy.STRICT

    def find_duplicates(self, candidates: Sequence[Row], existing: Sequence[Row]) -> dict[int, Row]:
        existing_by_key: dict[str, Row] = {}
        for row in existing:
            existing_by_key.setdefault(strict_key(row), row)

        duplicates = {
            index: existing_by_key[key]
            for index, key in ((i, strict_key(c)) for i, c in enumerate(candidates))
            if key in existing_by_key
        }
        logger.debug("Strict duplicate check: %d of %d candidates duplicated", len(duplicates), len(candidates))
        return duplicates


@dataclass(frozen=True)
class _Comparable:
    """Pre-parsed fields of a row for fuzzy comparison."""

    type: TransactionType
    cents: int
    date: FinancialDate
    description: str
    installment: tuple[int, int] | None

    @classmethod
    def from_row(cls, row: Row) -> "_Comparable | None":
        if not isinstance(row, Mapping):
            return None
        tx_type = TransactionType.parse(row.get("tipo"))
        cents = safe_to_cents(row.get("valor"))
        raw_date = row.get("data")
        if tx_type is None or cents is None or not raw_date:
            return None
        try:
            tx_date = FinancialDate.from_value(raw_date)
        except (TypeError, ValueError):
            return None

        description = str(row.get("descricao") or "")
        installment: tuple[int, int] | None = None
        index, count = row.get("parcela_atual"), row.get("parcelas")
        if index and count:
            try:
                installment = (int(index), int(count))
            except (TypeError, ValueError):
                installment = None
        if installment is None:
            installment = extract_installment_marker(description)

        return cls(
            type=tx_type,
            cents=cents,
            date=tx_date,
            description=normalize_description(description),
            installment=installment,
        )


class FuzzyDuplicateStrategy:
    """
    Tolerance-based duplicate detection for noisy input.

    A candidate duplicates an existing record when the types are equal, the
    values differ by at most the amount tolerance, the dates are within the
    date window, the normalized descriptions are similar enough, and no
    conflicting installment marker says they are different installments.
    """

    strategy = MatchStrategy.FUZZY

    def __init__(self, config: FuzzyMatchConfig | None = None):
        self.config = config or FuzzyMatchConfig()

    def is_duplicate(self, candidate: Row, existing: Row) -> bool:
        """Check one candidate against one existing record."""
        a = _Comparable.from_row(candidate)
        b = _Comparable.from_row(existing)
        if a is None or b is None:
            return False
        return self._score(a, b) is not None

    def find_duplicates(self, candidates: Sequence[Row], existing: Sequence[Row]) -> dict[int, Row]:
        parsed_existing = [(row, _Comparable.from_row(row)) for row in existing]

        duplicates: dict[int, Row] = {}
        for index, candidate in enumerate(candidates):
            parsed = _Comparable.from_row(candidate)
            if parsed is None:
                continue

            best_row: Row | None = None
            best_score = -1.0
            for row, other in parsed_existing:
                if other is None:
                    continue
                score = self._score(parsed, other)
                if score is not None and score > best_score:
                    best_row, best_score = row, score

            if best_row is not None:
                duplicates[index] = best_row

        logger.debug("Fuzzy duplicate check: %d of %d candidates flagged", len(duplicates), len(candidates))
        return duplicates

    def _score(self, candidate: _Comparable, existing: _Comparable) -> float | None:
        """Return the description similarity when all criteria hold, else None."""
        if candidate.type != existing.type:
            return None
        if abs(candidate.cents - existing.cents) > self.config.amount_tolerance_cents:
            return None
        if candidate.date.days_between(existing.date) > self.config.date_window_days:
            return None

        # Different installment of the same recurring purchase
        if candidate.installment and existing.installment and candidate.installment != existing.installment:
            return None

        similarity = description_similarity(candidate.description, existing.description)
        if similarity < self.config.similarity_threshold:
            return None
        return similarity


@dataclass
class CandidatePreview:
    """One loosely structured candidate with its duplicate verdict."""

    index: int
    candidate: dict[str, Any]
    duplicate_of: dict[str, Any] | None

    @property
    def is_duplicate(self) -> bool:
        return self.duplicate_of is not None

    @property
    def selected(self) -> bool:
        """Default keep/skip choice shown to the caller; duplicates start unselected."""
        return not self.is_duplicate

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "candidate": self.candidate,
            "duplicate": self.is_duplicate,
            "duplicateOf": self.duplicate_of,
            "selected": self.selected,
        }


def preview_candidates(
    candidates: Sequence[Row],
    existing: Sequence[Row],
    strategy: DuplicateStrategy | None = None,
) -> list[CandidatePreview]:
    """
    Flag candidates that look like records already on file.

    Nothing is dropped: every candidate is returned, duplicates merely start
    unselected so the caller makes the final keep/skip decision.

    Raises:
        StructuralError: If a candidate is not an object
    """
    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, Mapping):
            raise StructuralError(f"invalid structure: candidate {index} must be an object")

    detector = strategy or FuzzyDuplicateStrategy()
    duplicates = detector.find_duplicates(candidates, existing)
    return [
        CandidatePreview(
            index=index,
            candidate=dict(candidate),
            duplicate_of=dict(duplicates[index]) if index in duplicates else None,
        )
        for index, candidate in enumerate(candidates)
    ]
