"""
Readiness scoring engine.

The single source of truth for every 0-100 score the assistant shows:
compliance score from a report, document score from generated documents,
the combined readiness score, and the upload nudges.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from core.constants import (
    CHECK_WEIGHTS,
    MAX_SCORE,
    MIN_SCORE,
    UPLOAD_ADDED_SCORE_DELTA,
    UPLOAD_REMOVED_SCORE_DELTA,
)
from .compliance import ComplianceReport

Number = Union[int, float, Decimal]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero (37.5 -> 38)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def score(report: ComplianceReport) -> int:
    """
    Weighted share of passing checks across all jurisdictions.

    pass = 1, warn = 0.5, fail = 0. A report without checks scores 0.
    """
    checks = list(report.checks())
    if not checks:
        return 0
    earned = sum(Decimal(str(CHECK_WEIGHTS[check.status.value])) for check in checks)
    return clamp_score(round_half_up(Decimal(100) * earned / len(checks)))


def scored_report(report: ComplianceReport) -> ComplianceReport:
    """Copy of the report with overall_score filled in."""
    return report.model_copy(update={"overall_score": score(report)})


def document_score(documents: Iterable) -> int:
    """
    Share of required documents that have been generated.

    Accepts anything with ``required`` and ``generated`` attributes. 0 when
    nothing is required.
    """
    required = [document for document in documents if document.required]
    if not required:
        return 0
    generated = sum(1 for document in required if document.generated)
    return clamp_score(round_half_up(Decimal(100) * generated / len(required)))


def combine_scores(first: Optional[int], second: Optional[int]) -> int:
    """Average of the two scores when both exist, else whichever exists, else 0."""
    if first is not None and second is not None:
        return clamp_score(round_half_up(Decimal(first + second) / 2))
    if first is not None:
        return clamp_score(first)
    if second is not None:
        return clamp_score(second)
    return 0


def upload_added(current: int) -> int:
    return min(current + UPLOAD_ADDED_SCORE_DELTA, MAX_SCORE)


def upload_removed(current: int) -> int:
    return max(current - UPLOAD_REMOVED_SCORE_DELTA, MIN_SCORE)
