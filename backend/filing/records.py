"""
Filing records.

One typed record per filing type. Every field is optional so a record can
accumulate answers step by step; unknown keys are rejected. Callers and
serialized documents use the camelCase aliases (``inventorNames``), Python
code uses the snake_case names.
"""

import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from core.constants import FILING_BASIS_ALIASES, MIN_NICE_CLASS, MAX_NICE_CLASS

logger = logging.getLogger(__name__)


class FilingType(str, Enum):
    PATENT = "patent"
    TRADEMARK = "trademark"
    UNSET = "unset"


class ClaimKind(str, Enum):
    INDEPENDENT = "independent"
    DEPENDENT = "dependent"


class FilingBasis(str, Enum):
    USE_IN_COMMERCE = "use_in_commerce"
    INTENT_TO_USE = "intent_to_use"
    FOREIGN_REGISTRATION = "foreign_registration"


class RecordModel(BaseModel):
    """Shared configuration: camelCase aliases, snake_case accepted, no extra keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# --- Nested entries ---


class Claim(RecordModel):
    id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    kind: ClaimKind = ClaimKind.INDEPENDENT
    parent_id: Optional[str] = None  # None on a dependent claim = parent not chosen yet

    @model_validator(mode="after")
    def independent_claims_have_no_parent(self) -> "Claim":
        if self.kind == ClaimKind.INDEPENDENT and self.parent_id is not None:
            raise ValueError(f"Independent claim {self.id} cannot depend on claim {self.parent_id}")
        return self


class PriorArtReference(RecordModel):
    reference: str = Field(min_length=1)
    type: Optional[str] = None  # patent, publication, product
    relevance: Optional[str] = None


class GoodsService(RecordModel):
    description: str = Field(min_length=1)
    nice_class: int = Field(ge=MIN_NICE_CLASS, le=MAX_NICE_CLASS)
    industry: Optional[str] = None
    target_market: Optional[str] = None


# --- Records ---


class PatentRecord(RecordModel):
    # Basic Info
    title: Optional[str] = None
    inventor_names: Optional[List[str]] = None
    invention_type: Optional[str] = None
    brief_summary: Optional[str] = None

    # Detailed Description
    technical_field: Optional[str] = None
    background_art: Optional[str] = None
    detailed_description: Optional[str] = None
    advantageous_effects: Optional[str] = None
    drawing_descriptions: Optional[str] = None

    # Prior Art
    known_prior_art: Optional[str] = None
    prior_art_references: Optional[List[PriorArtReference]] = None

    # Claims
    claims: Optional[List[Claim]] = None

    # Jurisdiction specifics
    priority_claim: Optional[str] = None
    eu_representative: Optional[str] = None
    foreign_filing_details: Optional[str] = None
    inventor_declaration: Optional[bool] = None

    # Suggestion results
    claim_suggestions: Optional[List[str]] = None
    improvement_suggestions: Optional[List[str]] = None

    @field_validator("inventor_names", mode="before")
    @classmethod
    def split_inventor_names(cls, value: Any) -> Any:
        # "Ada Lovelace, Charles Babbage" -> two inventors
        if isinstance(value, str):
            return [name.strip() for name in value.replace("\n", ",").split(",") if name.strip()]
        return value

    @field_validator("claims")
    @classmethod
    def claim_ids_unique(cls, claims: Optional[List[Claim]]) -> Optional[List[Claim]]:
        if claims:
            seen = set()
            for claim in claims:
                if claim.id in seen:
                    raise ValueError(f"Duplicate claim id: {claim.id}")
                seen.add(claim.id)
        return claims


class TrademarkRecord(RecordModel):
    # Basic Info
    applicant_name: Optional[str] = None
    mark_name: Optional[str] = None
    mark_type: Optional[str] = None  # standard, stylized, design
    owner_name: Optional[str] = None
    owner_type: Optional[str] = None
    owner_address: Optional[str] = None
    filing_basis: Optional[FilingBasis] = None
    business_description: Optional[str] = None

    # Goods & Services
    goods_services: Optional[List[GoodsService]] = None

    # Usage Evidence
    first_use_date: Optional[date] = None
    first_use_commerce: Optional[date] = None
    commerce_type: Optional[str] = None
    usage_description: Optional[str] = None
    specimen_description: Optional[str] = None
    specimen_type: Optional[str] = None
    specimen_website: Optional[bool] = None
    specimen_product: Optional[bool] = None
    specimen_advertising: Optional[bool] = None
    specimen_receipt: Optional[bool] = None
    intended_use_description: Optional[str] = None

    # Declarations
    declaration_truth: Optional[bool] = None
    declaration_penalty: Optional[bool] = None
    power_of_attorney: Optional[bool] = None

    # Suggestion results
    class_suggestions: Optional[List[str]] = None
    improvement_suggestions: Optional[List[str]] = None

    @field_validator("filing_basis", mode="before")
    @classmethod
    def normalize_filing_basis(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return FILING_BASIS_ALIASES.get(value, value) or None
        return value

    @field_validator("first_use_date", "first_use_commerce", mode="before")
    @classmethod
    def date_only(cls, value: Any) -> Any:
        # Date pickers send full ISO timestamps
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            return value[:10]
        return value


FilingRecord = Union[PatentRecord, TrademarkRecord]

RECORD_CLASSES: Dict[FilingType, Type[RecordModel]] = {
    FilingType.PATENT: PatentRecord,
    FilingType.TRADEMARK: TrademarkRecord,
}


# --- Helpers ---


def record_class(filing_type: FilingType) -> Type[RecordModel]:
    try:
        return RECORD_CLASSES[FilingType(filing_type)]
    except KeyError:
        raise ValueError(f"No record shape for filing type '{filing_type}'") from None


def empty_record(filing_type: FilingType) -> FilingRecord:
    return record_class(filing_type)()


def record_aliases(filing_type: FilingType) -> List[str]:
    """Public field names of a record shape, in declaration order."""
    cls = record_class(filing_type)
    return [field.alias or name for name, field in cls.model_fields.items()]


def _field_name(cls: Type[RecordModel], key: str) -> str:
    for name, field in cls.model_fields.items():
        if key == name or key == field.alias:
            return name
    # Unknown keys pass through so extra="forbid" reports them
    return key


def merge_record(record: FilingRecord, patch: Mapping[str, Any]) -> FilingRecord:
    """
    Shallow-merge patch into record and validate against the record's shape.

    Later keys win. Returns a new record; the input is never modified.

    Raises:
        pydantic.ValidationError: If the merged data does not fit the shape
    """
    cls = type(record)
    data = record.model_dump(exclude_unset=True)
    for key, value in patch.items():
        data[_field_name(cls, key)] = value
    return cls.model_validate(data)


def record_to_document(record: Optional[FilingRecord]) -> Dict[str, Any]:
    """Serialize a record as a JSON-ready dict keyed by alias."""
    if record is None:
        return {}
    return record.model_dump(by_alias=True, exclude_unset=True, mode="json")


def has_value(value: Any) -> bool:
    """True when a field holds an answer: non-blank text, a non-empty list, a True flag."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def is_empty(record: Optional[FilingRecord]) -> bool:
    if record is None:
        return True
    return not any(has_value(getattr(record, name)) for name in record.model_fields_set)


# --- Claims ---


def claim_violations(claims: Optional[List[Claim]]) -> List[str]:
    """
    Dependent claims must point at an existing independent claim.

    An unresolved parent (None) is a data-entry state and is not reported here.
    """
    if not claims:
        return []

    by_id = {claim.id: claim for claim in claims}
    problems = []
    for claim in claims:
        if claim.kind != ClaimKind.DEPENDENT or claim.parent_id is None:
            continue
        parent = by_id.get(claim.parent_id)
        if parent is None:
            problems.append(f"Claim {claim.id} depends on missing claim {claim.parent_id}")
        elif parent.kind != ClaimKind.INDEPENDENT:
            problems.append(f"Claim {claim.id} depends on dependent claim {claim.parent_id}")
    return problems


def unresolved_claims(claims: Optional[List[Claim]]) -> List[str]:
    """Ids of dependent claims whose parent has not been chosen."""
    return [
        claim.id for claim in claims or []
        if claim.kind == ClaimKind.DEPENDENT and claim.parent_id is None
    ]


def independent_claim_count(claims: Optional[List[Claim]]) -> int:
    return sum(1 for claim in claims or [] if claim.kind == ClaimKind.INDEPENDENT)


def next_claim_id(claims: Optional[List[Claim]]) -> str:
    numbers = [int(claim.id) for claim in claims or [] if claim.id.isdigit()]
    return str(max(numbers, default=0) + 1)


def coerce_record(filing_type: FilingType, record: Any) -> Optional[FilingRecord]:
    """Accept a record instance or a plain alias-keyed mapping."""
    if record is None or isinstance(record, RecordModel):
        return record
    if isinstance(record, Mapping):
        return record_class(filing_type).model_validate(dict(record))
    raise TypeError(f"Expected a filing record or mapping, got {type(record).__name__}")


def field_alias(cls: Type[RecordModel], key: str) -> str:
    """Public alias for a field name or alias; unknown keys are returned unchanged."""
    for name, field in cls.model_fields.items():
        if key == name or key == field.alias:
            return field.alias or name
    return key


def validation_errors(cls: Type[RecordModel], error) -> Dict[str, str]:
    """Flatten a pydantic ValidationError into {alias: message}, first message per field."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        loc = item.get("loc") or ("record",)
        key = field_alias(cls, str(loc[0]))
        path = ".".join(str(part) for part in loc[1:])
        message = item.get("msg", "Invalid value")
        errors.setdefault(key, f"{path}: {message}" if path else message)
    return errors


def lenient_record(filing_type: FilingType, record: Any) -> Tuple[Optional[FilingRecord], Dict[str, str]]:
    """
    coerce_record for callers that must not raise on bad data.

    A mapping that does not fit the record shape is reduced to the fields that
    do; the dropped fields come back as {alias: message}.
    """
    try:
        return coerce_record(filing_type, record), {}
    except PydanticValidationError as e:
        cls = record_class(filing_type)
        errors = validation_errors(cls, e)

    logger.warning(f"Ignoring invalid {FilingType(filing_type).value} record fields: {', '.join(sorted(errors))}")
    kept = {key: value for key, value in dict(record).items() if field_alias(cls, key) not in errors}
    try:
        return cls.model_validate(kept), errors
    except PydanticValidationError:
        # Record-level problems (e.g. claim links) have no single field to drop
        return empty_record(filing_type), errors
