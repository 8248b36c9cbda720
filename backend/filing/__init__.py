"""
Filing session core: records, uploads, step validation, compliance checks,
readiness scoring and the session controller.
"""

from .records import (
    FilingType,
    ClaimKind,
    FilingBasis,
    Claim,
    PriorArtReference,
    GoodsService,
    PatentRecord,
    TrademarkRecord,
    merge_record,
    record_to_document,
)
from .uploads import UploadedFile, UploadSet
from .steps import StepCheck, StepStatus, can_advance, record_completeness
from .compliance import CheckStatus, ComplianceReport, RequirementCheck, evaluate
from .scoring import score, document_score, combine_scores
from .documents import GeneratedDocument, generate_documents
from .session import FilingSessionController, SessionState, TransitionResult
from .persistence import ApplicationSync

__all__ = [
    "FilingType",
    "ClaimKind",
    "FilingBasis",
    "Claim",
    "PriorArtReference",
    "GoodsService",
    "PatentRecord",
    "TrademarkRecord",
    "merge_record",
    "record_to_document",
    "UploadedFile",
    "UploadSet",
    "StepCheck",
    "StepStatus",
    "can_advance",
    "record_completeness",
    "CheckStatus",
    "ComplianceReport",
    "RequirementCheck",
    "evaluate",
    "score",
    "document_score",
    "combine_scores",
    "GeneratedDocument",
    "generate_documents",
    "FilingSessionController",
    "SessionState",
    "TransitionResult",
    "ApplicationSync",
]
