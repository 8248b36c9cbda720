"""
Required-document catalogue and content builders.

Each filing type has a fixed list of documents. A document is built from the
record as plain markup (``=== Title ===``, ``--- Section ---``, ``- item``,
``Key: value``, paragraphs) and handed to a DocumentRenderer. It counts as
generated only when its source fields are present and rendering succeeded.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from pydantic import Field

from core.logging import log_error
from .collaborators import DocumentRenderer
from .records import (
    ClaimKind,
    FilingRecord,
    FilingType,
    RecordModel,
    has_value,
)
from .steps import usage_evidence_relaxed

logger = logging.getLogger(__name__)


class DocumentStatus(str, Enum):
    GENERATED = "generated"
    PENDING = "pending"


class GeneratedDocument(RecordModel):
    id: str
    name: str
    type: str
    required: bool
    status: DocumentStatus = DocumentStatus.PENDING
    detail: Optional[str] = None
    content: Optional[bytes] = Field(default=None, exclude=True, repr=False)

    @property
    def generated(self) -> bool:
        return self.status == DocumentStatus.GENERATED


@dataclass(frozen=True)
class DocumentTemplate:
    id: str
    name: str
    type: str
    required: bool
    requires: Tuple[str, ...]
    build: Callable[[FilingRecord], str]
    # Drops the requirement for records it returns True for
    waived: Optional[Callable[[FilingRecord], bool]] = None

    def is_required(self, record: Optional[FilingRecord]) -> bool:
        if self.waived is not None and record is not None and self.waived(record):
            return False
        return self.required

    def missing_fields(self, record: FilingRecord) -> List[str]:
        return [attr for attr in self.requires if not has_value(getattr(record, attr, None))]


# --- markup helpers ---


def _title(text: str) -> str:
    return f"=== {text} ==="


def _section(text: str) -> str:
    return f"--- {text} ---"


def _pair(label: str, value) -> str:
    if isinstance(value, bool):
        value = "Yes" if value else "No"
    return f"{label}: {value if has_value(value) else 'Not provided'}"


def _lines(*parts) -> str:
    return "\n".join(part for part in parts if part is not None)


# --- patent builders ---


def _provisional_application(record) -> str:
    return _lines(
        _title("Provisional Patent Application"),
        _section("Invention"),
        _pair("Title", record.title),
        _pair("Invention Type", record.invention_type),
        _section("Inventors"),
        *[f"- {name}" for name in record.inventor_names or []],
        _section("Summary"),
        record.brief_summary,
    )


def _specification(record) -> str:
    return _lines(
        _title("Patent Specification"),
        _section("Technical Field"),
        record.technical_field,
        _section("Background Art"),
        record.background_art,
        _section("Detailed Description"),
        record.detailed_description,
        _section("Advantageous Effects"),
        record.advantageous_effects or "Not provided",
        _section("Brief Description of Drawings"),
        record.drawing_descriptions or "Not provided",
    )


def _claims(record) -> str:
    lines = [_title("Patent Claims")]
    for claim in record.claims or []:
        if claim.kind == ClaimKind.DEPENDENT and claim.parent_id:
            lines.append(f"- Claim {claim.id} (dependent on claim {claim.parent_id}) {claim.text}")
        else:
            lines.append(f"- Claim {claim.id} {claim.text}")
    return _lines(*lines)


def _inventor_declaration(record) -> str:
    return _lines(
        _title("Inventor Declaration"),
        _pair("Invention Title", record.title),
        _section("Declaring Inventors"),
        *[f"- {name}" for name in record.inventor_names or []],
        _section("Declaration"),
        "I hereby declare that I believe I am the original inventor or an original joint "
        "inventor of the claimed invention in the application.",
        _pair("Declaration Signed", record.inventor_declaration),
    )


def _disclosure_statement(record) -> str:
    lines = [_title("Information Disclosure Statement"), _section("Cited References")]
    for reference in record.prior_art_references or []:
        lines.append(f"- {reference.reference} ({reference.type or 'reference'})")
        if reference.relevance:
            lines.append(reference.relevance)
    if record.known_prior_art:
        lines.extend([_section("Known Prior Art"), record.known_prior_art])
    return _lines(*lines)


# --- trademark builders ---


def _trademark_application(record) -> str:
    return _lines(
        _title("Trademark Application"),
        _section("Applicant"),
        _pair("Applicant Name", record.applicant_name),
        _pair("Owner Name", record.owner_name),
        _pair("Owner Type", record.owner_type),
        _pair("Owner Address", record.owner_address),
        _section("Mark"),
        _pair("Mark", record.mark_name),
        _pair("Mark Type", record.mark_type),
        _pair("Filing Basis", record.filing_basis.value if record.filing_basis else None),
    )


def _goods_services_description(record) -> str:
    lines = [_title("Goods and Services Description")]
    for item in record.goods_services or []:
        lines.append(f"- Class {item.nice_class} {item.description}")
    return _lines(*lines)


def _declaration_of_use(record) -> str:
    return _lines(
        _title("Declaration of Use"),
        _pair("Mark", record.mark_name),
        _pair("First Use Date", record.first_use_date.isoformat() if record.first_use_date else None),
        _pair(
            "First Use in Commerce",
            record.first_use_commerce.isoformat() if record.first_use_commerce else None,
        ),
        _pair("Commerce Type", record.commerce_type),
        _section("Use"),
        record.usage_description or record.intended_use_description or "Not provided",
        _section("Declaration"),
        _pair("Statements are true", record.declaration_truth),
        _pair("Penalty of perjury acknowledged", record.declaration_penalty),
    )


def _specimen_of_use(record) -> str:
    kinds = [
        label for label, flag in (
            ("Website", record.specimen_website),
            ("Product", record.specimen_product),
            ("Advertising", record.specimen_advertising),
            ("Receipt", record.specimen_receipt),
        ) if flag
    ]
    return _lines(
        _title("Specimen of Use"),
        _pair("Mark", record.mark_name),
        _pair("Specimen Type", record.specimen_type),
        _section("Specimen Sources"),
        *[f"- {kind}" for kind in kinds],
        _section("Description"),
        record.specimen_description,
    )


PATENT_DOCUMENTS: Tuple[DocumentTemplate, ...] = (
    DocumentTemplate(
        "1", "Provisional Patent Application", "USPTO Form", True,
        ("title", "inventor_names", "brief_summary"), _provisional_application,
    ),
    DocumentTemplate(
        "2", "Patent Specification", "Technical Document", True,
        ("technical_field", "background_art", "detailed_description"), _specification,
    ),
    DocumentTemplate("3", "Patent Claims", "Legal Document", True, ("claims",), _claims),
    DocumentTemplate(
        "4", "Inventor Declaration", "USPTO Form", True,
        ("inventor_names", "inventor_declaration"), _inventor_declaration,
    ),
    DocumentTemplate(
        "5", "Information Disclosure Statement", "USPTO Form", False,
        ("prior_art_references",), _disclosure_statement,
    ),
)

TRADEMARK_DOCUMENTS: Tuple[DocumentTemplate, ...] = (
    DocumentTemplate(
        "1", "Trademark Application", "USPTO Form", True,
        ("applicant_name", "mark_name", "filing_basis"), _trademark_application,
    ),
    DocumentTemplate(
        "2", "Goods and Services Description", "Legal Document", True,
        ("goods_services",), _goods_services_description,
    ),
    DocumentTemplate(
        "3", "Declaration of Use", "USPTO Form", True,
        ("declaration_truth", "declaration_penalty"), _declaration_of_use,
    ),
    DocumentTemplate(
        "4", "Specimen of Use", "Evidence", True,
        ("specimen_description",), _specimen_of_use, waived=usage_evidence_relaxed,
    ),
)


def templates_for(filing_type: FilingType) -> Tuple[DocumentTemplate, ...]:
    if filing_type == FilingType.PATENT:
        return PATENT_DOCUMENTS
    if filing_type == FilingType.TRADEMARK:
        return TRADEMARK_DOCUMENTS
    return ()


def _pending(template: DocumentTemplate, required: bool, detail: str) -> GeneratedDocument:
    return GeneratedDocument(
        id=template.id,
        name=template.name,
        type=template.type,
        required=required,
        status=DocumentStatus.PENDING,
        detail=detail,
    )


async def generate_documents(
    filing_type: FilingType,
    record: Optional[FilingRecord],
    renderer: DocumentRenderer,
) -> List[GeneratedDocument]:
    """
    Build and render every catalogue document for the record.

    A failed render leaves that one document pending and the rest of the
    batch is still rendered.
    """
    documents: List[GeneratedDocument] = []
    for template in templates_for(filing_type):
        required = template.is_required(record)
        if record is None:
            documents.append(_pending(template, required, "No application data"))
            continue

        missing = template.missing_fields(record)
        if missing:
            documents.append(_pending(template, required, f"Missing: {', '.join(missing)}"))
            continue

        try:
            content = await renderer.render(template.build(record))
        except Exception as e:
            log_error(
                f"Rendering failed for {template.name}",
                error=e,
                context={"document": template.name, "filing_type": FilingType(filing_type).value},
            )
            documents.append(_pending(template, required, "Rendering failed"))
            continue

        documents.append(GeneratedDocument(
            id=template.id,
            name=template.name,
            type=template.type,
            required=required,
            status=DocumentStatus.GENERATED,
            content=content,
        ))

    generated = sum(1 for document in documents if document.generated)
    logger.info(
        f"Generated {generated}/{len(documents)} {FilingType(filing_type).value} documents"
    )
    return documents
