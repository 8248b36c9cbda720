"""
Step validator.

Pure predicates deciding whether the wizard may move past a step. Incomplete
data is an expected state: it is reported in a StepCheck, never raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import core.config as config
from core.constants import PATENT_STEPS, TRADEMARK_STEPS
from .records import (
    FilingBasis,
    FilingRecord,
    FilingType,
    has_value,
    independent_claim_count,
    lenient_record,
    unresolved_claims,
)

class StepStatus(str, Enum):
    VALID = "valid"
    INCOMPLETE = "incomplete"
    OUT_OF_RANGE = "out_of_range"


@dataclass
class StepCheck:
    status: StepStatus
    step: int
    missing_fields: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status == StepStatus.VALID

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "step": self.step,
            "isValid": self.is_valid,
            "missingFields": list(self.missing_fields),
            "errors": dict(self.errors),
        }


@dataclass(frozen=True)
class FieldRequirement:
    """One required answer: the alias reported as missing, its message, and the presence test."""

    alias: str
    message: str
    present: Callable[[FilingRecord], bool]


def _filled(attr: str) -> Callable[[FilingRecord], bool]:
    return lambda record: has_value(getattr(record, attr, None))


# --- Patent ---

PATENT_REQUIREMENTS: Dict[int, Tuple[FieldRequirement, ...]] = {
    1: (
        FieldRequirement("title", "Invention title is required", _filled("title")),
        FieldRequirement("inventorNames", "At least one inventor is required", _filled("inventor_names")),
        FieldRequirement("inventionType", "Invention type is required", _filled("invention_type")),
        FieldRequirement("briefSummary", "Brief summary is required", _filled("brief_summary")),
    ),
    2: (
        FieldRequirement("technicalField", "Technical field is required", _filled("technical_field")),
        FieldRequirement("backgroundArt", "Background art is required", _filled("background_art")),
        FieldRequirement("detailedDescription", "Detailed description is required", _filled("detailed_description")),
        FieldRequirement("advantageousEffects", "Advantageous effects are required", _filled("advantageous_effects")),
    ),
    # Prior art is optional
    3: (),
    4: (
        FieldRequirement(
            "claims",
            "At least one independent claim is required",
            lambda record: independent_claim_count(getattr(record, "claims", None)) > 0,
        ),
    ),
}

# --- Trademark ---

_MARK_BASICS: Tuple[FieldRequirement, ...] = (
    FieldRequirement("applicantName", "Applicant name is required", _filled("applicant_name")),
    FieldRequirement("markName", "Mark name is required", _filled("mark_name")),
    FieldRequirement("filingBasis", "Filing basis is required", _filled("filing_basis")),
)

_GOODS_SERVICES: Tuple[FieldRequirement, ...] = (
    FieldRequirement(
        "goodsServices", "At least one goods/service is required", _filled("goods_services")
    ),
)

_PROOF_OF_USE: Tuple[FieldRequirement, ...] = (
    FieldRequirement("firstUseDate", "First use date is required", _filled("first_use_date")),
    FieldRequirement(
        "specimenDescription", "Specimen description is required", _filled("specimen_description")
    ),
)

_INTENDED_USE: Tuple[FieldRequirement, ...] = (
    FieldRequirement(
        "intendedUseDescription",
        "Description of intended use is required",
        _filled("intended_use_description"),
    ),
)


def usage_evidence_relaxed(record: Optional[FilingRecord]) -> bool:
    """True when an intent-to-use trademark may skip first-use date and specimen."""
    basis = getattr(record, "filing_basis", None)
    return basis == FilingBasis.INTENT_TO_USE and config.INTENT_TO_USE_RELAXES_USAGE_EVIDENCE


def _usage_evidence_requirements(record: FilingRecord) -> Tuple[FieldRequirement, ...]:
    if usage_evidence_relaxed(record):
        return _INTENDED_USE
    return _PROOF_OF_USE


def step_count(filing_type: FilingType) -> int:
    if filing_type == FilingType.PATENT:
        return len(PATENT_STEPS)
    if filing_type == FilingType.TRADEMARK:
        return len(TRADEMARK_STEPS)
    return 0


def step_name(filing_type: FilingType, step: int) -> Optional[str]:
    names = PATENT_STEPS if filing_type == FilingType.PATENT else TRADEMARK_STEPS
    if filing_type == FilingType.UNSET or not 1 <= step <= len(names):
        return None
    return names[step - 1]


def requirements_for(
    filing_type: FilingType, step: int, record: FilingRecord
) -> Tuple[FieldRequirement, ...]:
    if filing_type == FilingType.PATENT:
        return PATENT_REQUIREMENTS[step]
    if step == 1:
        return _MARK_BASICS
    if step == 2:
        return _GOODS_SERVICES
    return _usage_evidence_requirements(record)


def _add_invalid(missing: List[str], errors: Dict[str, str], invalid: Dict[str, str]) -> None:
    for alias, message in invalid.items():
        if alias not in missing:
            missing.append(alias)
        errors[alias] = message


def can_advance(filing_type: FilingType, step: int, record: Optional[FilingRecord]) -> StepCheck:
    """
    Check whether every required answer for a step is present.

    A step outside [1, step_count] (or an unset filing type) yields OUT_OF_RANGE,
    which callers must treat as a contract problem rather than missing data.
    """
    if not isinstance(step, int) or not 1 <= step <= step_count(filing_type):
        return StepCheck(status=StepStatus.OUT_OF_RANGE, step=step)

    record, invalid = lenient_record(filing_type, record)

    missing: List[str] = []
    errors: Dict[str, str] = {}
    for requirement in requirements_for(filing_type, step, record):
        if record is None or not requirement.present(record):
            missing.append(requirement.alias)
            errors[requirement.alias] = requirement.message
    _add_invalid(missing, errors, invalid)

    status = StepStatus.INCOMPLETE if missing else StepStatus.VALID
    return StepCheck(status=status, step=step, missing_fields=missing, errors=errors)


def record_completeness(filing_type: FilingType, record: Optional[FilingRecord]) -> StepCheck:
    """
    Whole-record check used before finalizing: every step valid and no
    dependent claim left without a parent.

    The returned ``step`` is the first step with missing data, or the last step.
    """
    total = step_count(filing_type)
    if total == 0:
        return StepCheck(status=StepStatus.OUT_OF_RANGE, step=0)

    record, invalid = lenient_record(filing_type, record)

    missing: List[str] = []
    errors: Dict[str, str] = {}
    first_incomplete = None
    for step in range(1, total + 1):
        check = can_advance(filing_type, step, record)
        if not check.is_valid:
            first_incomplete = first_incomplete or step
            missing.extend(check.missing_fields)
            errors.update(check.errors)

    if filing_type == FilingType.PATENT and record is not None:
        pending = unresolved_claims(record.claims)
        if pending:
            first_incomplete = first_incomplete or total
            if "claims" not in missing:
                missing.append("claims")
            errors["claims"] = (
                f"Choose a parent claim for dependent claim(s) {', '.join(pending)}"
            )

    if invalid:
        first_incomplete = 1
        _add_invalid(missing, errors, invalid)

    if missing:
        return StepCheck(
            status=StepStatus.INCOMPLETE,
            step=first_incomplete,
            missing_fields=missing,
            errors=errors,
        )
    return StepCheck(status=StepStatus.VALID, step=total)
