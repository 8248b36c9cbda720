"""
Jurisdiction compliance evaluator.

Deterministic checks of a filing record against USPTO, EUIPO and Indian
Patent Office filing requirements. Each check is an independent predicate
over the record; an absent answer maps to warn or fail, never to pass.
The evaluator never mutates the record and never raises for missing or malformed data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import Field

from core.constants import JURISDICTIONS, SPECIFICATION_MIN_LENGTH
from .records import (
    FilingBasis,
    FilingRecord,
    FilingType,
    RecordModel,
    empty_record,
    has_value,
    lenient_record,
)


class CheckStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class RequirementCheck(RecordModel):
    id: str
    description: str
    status: CheckStatus
    detail: str


class ComplianceReport(RecordModel):
    uspto: List[RequirementCheck] = Field(default_factory=list)
    euipo: List[RequirementCheck] = Field(default_factory=list)
    india: List[RequirementCheck] = Field(default_factory=list)
    overall_score: Optional[int] = None  # filled in by the scoring engine

    def checks(self) -> Iterator[RequirementCheck]:
        for jurisdiction in JURISDICTIONS:
            yield from getattr(self, jurisdiction)

    def for_jurisdiction(self, jurisdiction: str) -> List[RequirementCheck]:
        if jurisdiction not in JURISDICTIONS:
            raise ValueError(f"Unknown jurisdiction: {jurisdiction}")
        return getattr(self, jurisdiction)

    def find(self, jurisdiction: str, description: str) -> Optional[RequirementCheck]:
        for check in self.for_jurisdiction(jurisdiction):
            if check.description == description:
                return check
        return None


Outcome = Tuple[CheckStatus, str]


@dataclass(frozen=True)
class RequirementRule:
    id: str
    description: str
    evaluate: Callable[[FilingRecord], Outcome]

    def check(self, record: FilingRecord) -> RequirementCheck:
        status, detail = self.evaluate(record)
        return RequirementCheck(id=self.id, description=self.description, status=status, detail=detail)


def _field(record: FilingRecord, attr: str):
    return getattr(record, attr, None)


def _present(*attrs: str) -> Callable[[FilingRecord], bool]:
    return lambda record: all(has_value(_field(record, attr)) for attr in attrs)


def _rule(
    rule_id: str,
    description: str,
    satisfied: Callable[[FilingRecord], bool],
    ok: str,
    missing: str,
    otherwise: CheckStatus = CheckStatus.FAIL,
) -> RequirementRule:
    def evaluate(record: FilingRecord) -> Outcome:
        if satisfied(record):
            return CheckStatus.PASS, ok
        return otherwise, missing

    return RequirementRule(rule_id, description, evaluate)


# =============================================================================
# Patent
# =============================================================================


def _specification_complete(record: FilingRecord) -> bool:
    description = _field(record, "detailed_description") or ""
    return len(description.strip()) > SPECIFICATION_MIN_LENGTH


def _patent_claims(record: FilingRecord) -> Outcome:
    claims = _field(record, "claims") or []
    if claims:
        return CheckStatus.PASS, f"{len(claims)} claims provided"
    return CheckStatus.FAIL, "No patent claims provided"


PATENT_RULES: Dict[str, Tuple[RequirementRule, ...]] = {
    "uspto": (
        _rule(
            "1", "Inventor information", _present("inventor_names"),
            "All required inventor details provided",
            "Missing inventor names and details",
        ),
        _rule(
            "2", "Specification completeness", _specification_complete,
            "Specification meets minimum requirements",
            "Specification may be insufficient - add more details",
            otherwise=CheckStatus.WARN,
        ),
        RequirementRule("3", "Patent claims", _patent_claims),
        _rule(
            "4", "Drawings", _present("drawing_descriptions"),
            "Drawings described",
            "Ensure drawings clearly show all claimed features",
            otherwise=CheckStatus.WARN,
        ),
        _rule(
            "5", "Declaration", lambda record: _field(record, "inventor_declaration") is True,
            "Declaration form is complete",
            "Inventor declaration not signed",
        ),
    ),
    "euipo": (
        _rule(
            "1", "Priority claim", _present("priority_claim"),
            "Priority claim provided",
            "Consider adding priority information if applicable",
            otherwise=CheckStatus.WARN,
        ),
        _rule(
            "2", "Technical field description", _present("technical_field"),
            "Technical field identified",
            "Technical field description missing",
        ),
        _rule(
            "3", "European representative", _present("eu_representative"),
            "European representative appointed",
            "EU representative information required for filing",
            otherwise=CheckStatus.WARN,
        ),
    ),
    "india": (
        _rule(
            "1", "Form 1 requirements", _present("title", "inventor_names"),
            "All Form 1 fields completed",
            "Title and inventor details needed for Form 1",
        ),
        _rule(
            "2", "Form 2 requirements", _present("detailed_description", "claims"),
            "Specification and claims meet Form 2 requirements",
            "Incomplete specification or claims for Form 2",
        ),
        _rule(
            "3", "Form 3 requirements", _present("foreign_filing_details"),
            "Foreign filing details provided",
            "Foreign filing information may be needed",
            otherwise=CheckStatus.WARN,
        ),
        _rule(
            "4", "Form 5 requirements", lambda record: _field(record, "inventor_declaration") is True,
            "All inventor declarations available",
            "Inventor declaration missing for Form 5",
        ),
    ),
}


# =============================================================================
# Trademark
# =============================================================================


SPECIMEN_FLAGS = ("specimen_website", "specimen_product", "specimen_advertising", "specimen_receipt")


def _specimen_provided(record: FilingRecord) -> bool:
    if any(_field(record, flag) is True for flag in SPECIMEN_FLAGS):
        return True
    return has_value(_field(record, "specimen_description"))


def _goods_services(record: FilingRecord) -> Outcome:
    items = _field(record, "goods_services") or []
    if items:
        return CheckStatus.PASS, f"{len(items)} goods/services listed"
    return CheckStatus.FAIL, "No goods or services specified"


def _mark_type(record: FilingRecord) -> Outcome:
    mark_type = _field(record, "mark_type")
    if has_value(mark_type):
        return CheckStatus.PASS, f"{mark_type} mark type specified"
    return CheckStatus.FAIL, "Mark type not specified"


def _user_affidavit(record: FilingRecord) -> Outcome:
    basis = _field(record, "filing_basis")
    if basis is None:
        return CheckStatus.WARN, "Filing basis not selected"
    if basis != FilingBasis.USE_IN_COMMERCE:
        return CheckStatus.PASS, "Not applicable for proposed use"
    if has_value(_field(record, "usage_description")) or has_value(_field(record, "first_use_date")):
        return CheckStatus.PASS, "Evidence of use available for the user affidavit"
    return CheckStatus.WARN, "User affidavit may need additional details"


TRADEMARK_RULES: Dict[str, Tuple[RequirementRule, ...]] = {
    "uspto": (
        _rule(
            "1", "Mark representation", _present("mark_name"),
            "Mark properly identified",
            "Mark name or representation missing",
        ),
        RequirementRule("2", "Goods & services", _goods_services),
        _rule(
            "3", "Specimen of use", _specimen_provided,
            "Specimen provided",
            "Specimen may be required for use-based applications",
            otherwise=CheckStatus.WARN,
        ),
        _rule(
            "4", "Declaration",
            lambda record: _field(record, "declaration_truth") is True
            and _field(record, "declaration_penalty") is True,
            "Declaration signed",
            "Declaration not complete",
        ),
    ),
    "euipo": (
        RequirementRule("1", "Mark type designation", _mark_type),
        _rule(
            "2", "Owner details", _present("owner_name"),
            "Owner information complete",
            "Owner details incomplete",
        ),
        _rule(
            "3", "Nice classifications", _present("goods_services"),
            "Classes correctly specified",
            "Nice classifications missing",
        ),
    ),
    "india": (
        _rule(
            "1", "Form TM-A requirements", _present("applicant_name", "mark_name", "filing_basis"),
            "Application form complete",
            "Applicant, mark and filing basis needed for Form TM-A",
        ),
        RequirementRule("2", "User affidavit", _user_affidavit),
        _rule(
            "3", "POA requirements", lambda record: _field(record, "power_of_attorney") is True,
            "Power of Attorney provided",
            "Power of Attorney for Indian agent may be required",
            otherwise=CheckStatus.WARN,
        ),
    ),
}

RULES: Dict[FilingType, Dict[str, Tuple[RequirementRule, ...]]] = {
    FilingType.PATENT: PATENT_RULES,
    FilingType.TRADEMARK: TRADEMARK_RULES,
}


def evaluate(filing_type: FilingType, record: Optional[FilingRecord]) -> ComplianceReport:
    """
    Evaluate every jurisdiction's checks for the record.

    The report's ``overall_score`` is left unset; the scoring engine owns it.
    An unset filing type yields an empty report.
    """
    rules = RULES.get(FilingType(filing_type))
    if rules is None:
        return ComplianceReport()

    # Fields that fail validation are dropped and evaluated as absent
    record = lenient_record(filing_type, record)[0] or empty_record(filing_type)

    return ComplianceReport(**{
        jurisdiction: [rule.check(record) for rule in rules[jurisdiction]]
        for jurisdiction in JURISDICTIONS
    })

