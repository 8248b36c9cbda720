"""
Filing session controller.

The one owner of a FilingSession. Every read and write of the filing type,
step, record, uploads and scores goes through the controller, which keeps the
invariants and re-derives the compliance score after each mutation.

Routine rejections (incomplete step, invalid patch, bad upload) come back as
TransitionResult values. Broken contracts (a dependent claim pointing at a
claim that does not exist) raise InvariantViolation when STRICT_INVARIANTS is
on and are logged and rejected otherwise.

Suggestion and document requests run as asyncio tasks tagged with a
StalenessToken. Changing step or filing type, or resetting, cancels them; a
result that arrives for a superseded token is dropped.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

import core.config as config
from core.constants import MAX_SUGGESTIONS
from core.errors import InvariantViolation
from core.logging import log_audit, log_error, log_warning
from .collaborators import (
    BlobMetadata,
    BlobStore,
    DocumentRenderer,
    SuggestionContext,
    SuggestionProvider,
)
from .compliance import ComplianceReport, evaluate
from .documents import GeneratedDocument, generate_documents
from .records import (
    Claim,
    ClaimKind,
    FilingRecord,
    FilingType,
    RecordModel,
    claim_violations,
    empty_record,
    field_alias,
    is_empty,
    merge_record,
    next_claim_id,
    record_to_document,
    validation_errors,
)
from .scoring import (
    combine_scores,
    document_score,
    score,
    scored_report,
    upload_added,
    upload_removed,
)
from .steps import StepCheck, StepStatus, can_advance, record_completeness, step_count, step_name
from .uploads import UploadedFile, UploadSet, check_upload

logger = logging.getLogger(__name__)

SUGGESTION_FIELDS = {
    FilingType.PATENT: ("claimSuggestions", "improvementSuggestions"),
    FilingType.TRADEMARK: ("classSuggestions", "improvementSuggestions"),
}


class ExportDocument(RecordModel):
    """A session serialized for download, and the shape restore accepts."""

    filing_type: FilingType
    current_step: int = Field(default=1, ge=1)
    record: Optional[Dict[str, Any]] = None
    uploads: List[UploadedFile] = Field(default_factory=list)


class SessionState(str, Enum):
    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    READY_TO_FINALIZE = "ready_to_finalize"


@dataclass
class TransitionResult:
    accepted: bool
    reason: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    payload: Any = None

    @classmethod
    def ok(cls, reason: Optional[str] = None, payload: Any = None) -> "TransitionResult":
        return cls(accepted=True, reason=reason, payload=payload)

    @classmethod
    def rejected(
        cls,
        reason: str,
        missing_fields: Optional[List[str]] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> "TransitionResult":
        return cls(
            accepted=False,
            reason=reason,
            missing_fields=list(missing_fields or []),
            errors=dict(errors or {}),
        )

    @classmethod
    def from_check(cls, reason: str, check: StepCheck) -> "TransitionResult":
        return cls.rejected(reason, check.missing_fields, check.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "reason": self.reason,
            "missingFields": list(self.missing_fields),
            "errors": dict(self.errors),
        }


@dataclass(frozen=True)
class StalenessToken:
    filing_type: FilingType
    step: int
    epoch: int


@dataclass
class FilingSession:
    filing_type: FilingType = FilingType.UNSET
    current_step: int = 1
    record: Optional[FilingRecord] = None
    uploads: UploadSet = field(default_factory=UploadSet)
    compliance_score: int = 0
    document_score: Optional[int] = None
    documents: List[GeneratedDocument] = field(default_factory=list)
    state: SessionState = SessionState.UNSTARTED


class FilingSessionController:
    """Stateful orchestrator for one filing session."""

    def __init__(self, session_id: Optional[str] = None, strict: Optional[bool] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.session = FilingSession()
        self.notices: List[str] = []
        self._strict = strict
        self._epoch = 0
        self._generation = 0  # bumped by reset and type selection
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def filing_type(self) -> FilingType:
        return self.session.filing_type

    @property
    def current_step(self) -> int:
        return self.session.current_step

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def record(self) -> Optional[FilingRecord]:
        return self.session.record

    @property
    def uploads(self) -> UploadSet:
        return self.session.uploads

    @property
    def compliance_score(self) -> int:
        return self.session.compliance_score

    @property
    def readiness_score(self) -> int:
        return combine_scores(self.session.compliance_score, self.session.document_score)

    @property
    def step_count(self) -> int:
        return step_count(self.filing_type)

    @property
    def pending_tasks(self) -> List[asyncio.Task]:
        return [task for task in self._tasks if not task.done()]

    def staleness_token(self) -> StalenessToken:
        return StalenessToken(self.filing_type, self.current_step, self._epoch)

    def is_current(self, token: StalenessToken) -> bool:
        return token == self.staleness_token()

    def compliance_report(self) -> ComplianceReport:
        if self.filing_type == FilingType.UNSET:
            return scored_report(ComplianceReport())
        return scored_report(evaluate(self.filing_type, self.record))

    def validate_current_step(self) -> StepCheck:
        return can_advance(self.filing_type, self.current_step, self.record)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "filingType": self.filing_type.value,
            "state": self.state.value,
            "currentStep": self.current_step,
            "stepCount": self.step_count,
            "stepName": step_name(self.filing_type, self.current_step),
            "record": record_to_document(self.record),
            "uploads": self.uploads.to_list(),
            "complianceScore": self.session.compliance_score,
            "documentScore": self.session.document_score,
            "readinessScore": self.readiness_score,
            "documents": [
                document.model_dump(by_alias=True, mode="json") for document in self.session.documents
            ],
            "notices": list(self.notices),
        }

    # ------------------------------------------------------------------
    # Filing type and reset
    # ------------------------------------------------------------------

    def select_filing_type(self, filing_type: Union[FilingType, str]) -> TransitionResult:
        try:
            filing_type = FilingType(filing_type)
        except ValueError:
            return TransitionResult.rejected(f"Unknown filing type: {filing_type}")
        if filing_type == FilingType.UNSET:
            return TransitionResult.rejected("Choose a patent or trademark filing")

        if self.state != SessionState.UNSTARTED:
            # Changing type never carries answers across
            self.reset()

        self.session.filing_type = filing_type
        self.session.current_step = 1
        self.session.record = empty_record(filing_type)
        self.session.uploads.clear()
        self.session.document_score = None
        self.session.documents = []
        self.session.state = SessionState.IN_PROGRESS
        self._recompute()
        self._epoch += 1
        self._generation += 1

        log_audit("select_type", "session", self.session_id, details={"filing_type": filing_type.value})
        return TransitionResult.ok()

    def reset(self) -> TransitionResult:
        self._supersede()
        self._generation += 1
        self.session = FilingSession()
        self.notices = []
        log_audit("reset", "session", self.session_id)
        return TransitionResult.ok()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance_step(self) -> TransitionResult:
        if self.state == SessionState.UNSTARTED:
            return TransitionResult.rejected("Select a filing type first")
        if self.state == SessionState.READY_TO_FINALIZE:
            return TransitionResult.ok("Application is ready to finalize")

        check = self.validate_current_step()
        if check.status == StepStatus.OUT_OF_RANGE:
            result = self._contract_violation(
                f"Current step {self.current_step} is outside 1..{self.step_count}",
                {"step": self.current_step},
            )
            self.session.current_step = min(max(self.current_step, 1), self.step_count)
            return result
        if not check.is_valid:
            return TransitionResult.from_check("Complete the required fields to continue", check)

        if self.current_step < self.step_count:
            self.session.current_step += 1
            self._supersede()
            return TransitionResult.ok()

        completeness = record_completeness(self.filing_type, self.record)
        if not completeness.is_valid:
            return TransitionResult.from_check("Application is incomplete", completeness)

        self.session.state = SessionState.READY_TO_FINALIZE
        logger.info(f"Session {self.session_id} is ready to finalize")
        return TransitionResult.ok("Application is ready to finalize")

    def retreat_step(self) -> TransitionResult:
        if self.state == SessionState.UNSTARTED:
            return TransitionResult.rejected("Select a filing type first")

        self.session.state = SessionState.IN_PROGRESS
        if self.current_step > 1:
            self.session.current_step -= 1
            self._supersede()
        return TransitionResult.ok()

    # ------------------------------------------------------------------
    # Record mutation
    # ------------------------------------------------------------------

    def merge_fields(self, patch: Mapping[str, Any]) -> TransitionResult:
        """Shallow-merge patch into the record. Every record edit ends up here."""
        if self.state == SessionState.UNSTARTED or self.record is None:
            return TransitionResult.rejected("Select a filing type before entering data")
        if not isinstance(patch, Mapping):
            return TransitionResult.rejected("Field updates must be a mapping of field names to values")

        record_cls = type(self.record)
        try:
            merged = merge_record(self.record, patch)
        except PydanticValidationError as e:
            errors = validation_errors(record_cls, e)
            return TransitionResult.rejected("Invalid field values", list(errors), errors)

        problems = claim_violations(getattr(merged, "claims", None))
        if problems:
            return self._contract_violation("; ".join(problems), {"claims": problems})

        self.session.record = merged
        self._recompute()

        if self.state == SessionState.READY_TO_FINALIZE:
            if not record_completeness(self.filing_type, merged).is_valid:
                self.session.state = SessionState.IN_PROGRESS

        logger.debug(
            f"Session {self.session_id} merged fields: "
            f"{', '.join(field_alias(record_cls, key) for key in patch)}"
        )
        return TransitionResult.ok()

    def _require(self, filing_type: FilingType, what: str) -> Optional[TransitionResult]:
        if self.filing_type != filing_type:
            return TransitionResult.rejected(f"{what} only apply to {filing_type.value} filings")
        return None

    def add_claim(
        self,
        text: str,
        kind: Union[ClaimKind, str] = ClaimKind.INDEPENDENT,
        parent_id: Optional[str] = None,
        claim_id: Optional[str] = None,
    ) -> TransitionResult:
        rejected = self._require(FilingType.PATENT, "Claims")
        if rejected:
            return rejected

        claims = list(self.record.claims or [])
        new_id = claim_id or next_claim_id(claims)
        claims.append({"id": new_id, "text": text, "kind": kind, "parentId": parent_id})
        result = self.merge_fields({"claims": claims})
        if result.accepted:
            result.payload = new_id
        return result

    def remove_claim(self, claim_id: str) -> TransitionResult:
        rejected = self._require(FilingType.PATENT, "Claims")
        if rejected:
            return rejected

        claims: List[Claim] = list(self.record.claims or [])
        if not any(claim.id == claim_id for claim in claims):
            return TransitionResult.rejected(f"Unknown claim: {claim_id}")

        remaining = []
        for claim in claims:
            if claim.id == claim_id:
                continue
            if claim.parent_id == claim_id:
                # Dependents lose their parent and wait for a new one
                claim = claim.model_copy(update={"parent_id": None})
            remaining.append(claim)
        return self.merge_fields({"claims": remaining})

    def add_prior_art(
        self, reference: str, type: Optional[str] = None, relevance: Optional[str] = None
    ) -> TransitionResult:
        rejected = self._require(FilingType.PATENT, "Prior art references")
        if rejected:
            return rejected
        references = list(self.record.prior_art_references or [])
        references.append({"reference": reference, "type": type, "relevance": relevance})
        return self.merge_fields({"priorArtReferences": references})

    def remove_prior_art(self, index: int) -> TransitionResult:
        rejected = self._require(FilingType.PATENT, "Prior art references")
        if rejected:
            return rejected
        references = list(self.record.prior_art_references or [])
        if not 0 <= index < len(references):
            return TransitionResult.rejected(f"No prior art reference at position {index}")
        del references[index]
        return self.merge_fields({"priorArtReferences": references})

    def add_goods_service(
        self,
        description: str,
        nice_class: int,
        industry: Optional[str] = None,
        target_market: Optional[str] = None,
    ) -> TransitionResult:
        rejected = self._require(FilingType.TRADEMARK, "Goods and services")
        if rejected:
            return rejected
        items = list(self.record.goods_services or [])
        items.append({
            "description": description,
            "niceClass": nice_class,
            "industry": industry,
            "targetMarket": target_market,
        })
        return self.merge_fields({"goodsServices": items})

    def remove_goods_service(self, index: int) -> TransitionResult:
        rejected = self._require(FilingType.TRADEMARK, "Goods and services")
        if rejected:
            return rejected
        items = list(self.record.goods_services or [])
        if not 0 <= index < len(items):
            return TransitionResult.rejected(f"No goods/service entry at position {index}")
        del items[index]
        return self.merge_fields({"goodsServices": items})

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def _as_upload(self, upload: Union[UploadedFile, Mapping[str, Any]]) -> Union[UploadedFile, TransitionResult]:
        if isinstance(upload, UploadedFile):
            return upload
        if not isinstance(upload, Mapping):
            return TransitionResult.rejected("Invalid upload", ["upload"], {"upload": "Expected an upload object"})
        try:
            return UploadedFile.model_validate(dict(upload))
        except PydanticValidationError as e:
            errors = validation_errors(UploadedFile, e)
            return TransitionResult.rejected("Invalid upload", list(errors), errors)

    def add_upload(self, upload: Union[UploadedFile, Mapping[str, Any]]) -> TransitionResult:
        if self.state == SessionState.UNSTARTED:
            return TransitionResult.rejected("Select a filing type before uploading documents")

        upload = self._as_upload(upload)
        if isinstance(upload, TransitionResult):
            return upload

        errors = check_upload(self.filing_type, upload)
        if errors:
            return TransitionResult.rejected("Upload rejected", errors=errors)
        if upload.id in self.uploads:
            return TransitionResult.rejected(f"Upload {upload.id} is already attached")

        self.uploads.add(upload)
        self.session.compliance_score = upload_added(self.session.compliance_score)
        logger.info(f"Session {self.session_id} attached {upload.category} upload {upload.name}")
        return TransitionResult.ok(payload=upload)

    def remove_upload(self, upload_id: str) -> TransitionResult:
        if self.state == SessionState.UNSTARTED:
            return TransitionResult.rejected("No uploads in an unstarted session")
        removed = self.uploads.remove(upload_id)
        if removed is None:
            return TransitionResult.rejected(f"Unknown upload: {upload_id}")

        self.session.compliance_score = upload_removed(self.session.compliance_score)
        logger.info(f"Session {self.session_id} removed upload {removed.name}")
        return TransitionResult.ok(payload=removed)

    async def upload_file(
        self,
        blob_store: BlobStore,
        data: bytes,
        name: str,
        media_type: str,
        category: str,
    ) -> TransitionResult:
        """
        Validate, store the bytes in the blob store, then attach the upload.

        A blob store failure rejects the upload and leaves the session unchanged.
        """
        if self.state == SessionState.UNSTARTED:
            return TransitionResult.rejected("Select a filing type before uploading documents")

        upload = self._as_upload({
            "name": name, "mediaType": media_type, "size": len(data), "category": category,
        })
        if isinstance(upload, TransitionResult):
            return upload
        errors = check_upload(self.filing_type, upload)
        if errors:
            return TransitionResult.rejected("Upload rejected", errors=errors)

        generation = self._generation
        try:
            reference = await blob_store.upload(
                data,
                BlobMetadata(name=name, media_type=upload.media_type, category=category,
                             session_id=self.session_id),
            )
        except Exception as e:
            log_error("Blob upload failed", error=e, context={"session_id": self.session_id})
            self._notify("The file could not be stored. Please try again.")
            return TransitionResult.rejected("Upload failed")

        if generation != self._generation:
            return TransitionResult.rejected("Session changed while uploading")
        return self.add_upload(upload.model_copy(update={"blob_reference": reference}))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def record_documents(self, documents: Iterable[GeneratedDocument]) -> TransitionResult:
        documents = list(documents)
        self.session.documents = documents
        self.session.document_score = document_score(documents)
        return TransitionResult.ok(payload=self.session.document_score)

    # ------------------------------------------------------------------
    # Background collaborator work
    # ------------------------------------------------------------------

    def request_suggestions(
        self,
        provider: SuggestionProvider,
        target_field: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> "asyncio.Task[TransitionResult]":
        """
        Ask the provider for suggestions and merge them into target_field.

        Must be called from a running event loop. The task resolves to the
        TransitionResult of the merge, or a rejection when the provider failed
        or the session moved on before the answer arrived.
        """
        token = self.staleness_token()
        suggestion_context = SuggestionContext(
            filing_type=self.filing_type.value,
            target_field=target_field,
            step=self.current_step,
            record=record_to_document(self.record),
            extra=dict(context or {}),
        )
        return self._spawn(
            self._run_suggestions(provider, target_field, token, suggestion_context),
            name=f"suggest:{self.session_id}:{target_field}",
        )

    async def _run_suggestions(
        self,
        provider: SuggestionProvider,
        target_field: str,
        token: StalenessToken,
        context: SuggestionContext,
    ) -> TransitionResult:
        allowed = SUGGESTION_FIELDS.get(token.filing_type, ())
        if target_field not in allowed:
            return TransitionResult.rejected(f"{target_field} does not take suggestions")

        try:
            suggestions = await provider.suggest(context)
        except Exception as e:
            log_error(
                "Suggestion provider failed",
                error=e,
                context={"session_id": self.session_id, "target_field": target_field},
            )
            self._notify("Suggestions are unavailable right now.")
            return TransitionResult.rejected("No suggestions available")

        if not self.is_current(token):
            logger.info(f"Discarding stale suggestions for {target_field} in session {self.session_id}")
            return TransitionResult.rejected("Session moved on; suggestions discarded")

        suggestions = [str(s) for s in suggestions or [] if str(s).strip()][:MAX_SUGGESTIONS]
        return self.merge_fields({target_field: suggestions})

    def request_documents(self, renderer: DocumentRenderer) -> "asyncio.Task[TransitionResult]":
        """Generate the document catalogue in the background and record the document score."""
        token = self.staleness_token()
        return self._spawn(
            self._run_documents(renderer, token, self.record),
            name=f"documents:{self.session_id}",
        )

    async def _run_documents(
        self,
        renderer: DocumentRenderer,
        token: StalenessToken,
        record: Optional[FilingRecord],
    ) -> TransitionResult:
        if token.filing_type == FilingType.UNSET:
            return TransitionResult.rejected("Select a filing type first")

        try:
            documents = await generate_documents(token.filing_type, record, renderer)
        except Exception as e:
            log_error("Document generation failed", error=e, context={"session_id": self.session_id})
            self._notify("Documents could not be generated.")
            return TransitionResult.rejected("Document generation failed")

        if not self.is_current(token):
            logger.info(f"Discarding stale documents for session {self.session_id}")
            return TransitionResult.rejected("Session moved on; documents discarded")

        return self.record_documents(documents)

    async def cancel_pending(self) -> None:
        """Cancel background tasks and wait for them to finish."""
        tasks = self.pending_tasks
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Export / restore
    # ------------------------------------------------------------------

    def export_document(self) -> Dict[str, Any]:
        """The "download my application" document."""
        return {
            "filingType": self.filing_type.value,
            "currentStep": self.current_step,
            "record": record_to_document(self.record),
            "uploads": self.uploads.to_list(),
        }

    def _as_export(self, document: Any) -> Union[ExportDocument, TransitionResult]:
        if isinstance(document, ExportDocument):
            return document
        if not isinstance(document, Mapping):
            errors = {"document": "Expected a JSON object"}
        else:
            try:
                return ExportDocument.model_validate(dict(document))
            except PydanticValidationError as e:
                errors = validation_errors(ExportDocument, e)
        logger.info(f"Rejected application document for session {self.session_id}: {', '.join(sorted(errors))}")
        return TransitionResult.rejected("Invalid application document", list(errors), errors)

    def restore(self, document: Union[ExportDocument, Mapping[str, Any]]) -> TransitionResult:
        """
        Rebuild the session from an exported document.

        The step is replayed through advance_step, so a document cannot skip
        past an incomplete step. On rejection the session is left reset.
        """
        document = self._as_export(document)
        if isinstance(document, TransitionResult):
            self.reset()
            return document

        result = self.select_filing_type(document.filing_type)
        if not result.accepted:
            self.reset()
            return result

        result = self.merge_fields(document.record or {})
        if not result.accepted:
            self.reset()
            return result

        for upload in document.uploads:
            errors = check_upload(self.filing_type, upload)
            if errors or upload.id in self.uploads:
                self.reset()
                return TransitionResult.rejected("Upload rejected", errors=errors)
            self.uploads.add(upload)

        while self.current_step < min(document.current_step, self.step_count):
            if not self.advance_step().accepted:
                break
        return TransitionResult.ok()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _recompute(self) -> None:
        if self.record is None or is_empty(self.record):
            self.session.compliance_score = 0
        else:
            self.session.compliance_score = score(evaluate(self.filing_type, self.record))

    def _supersede(self) -> None:
        self._epoch += 1
        for task in self.pending_tasks:
            task.cancel()

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self, message: str) -> None:
        self.notices.append(message)
        log_warning(message, context={"session_id": self.session_id})

    def _strict_mode(self) -> bool:
        return config.STRICT_INVARIANTS if self._strict is None else self._strict

    def _contract_violation(self, message: str, details: Optional[Dict[str, Any]] = None) -> TransitionResult:
        if self._strict_mode():
            raise InvariantViolation(message, details=details)
        log_error(message, context={"session_id": self.session_id, **(details or {})})
        return TransitionResult.rejected(message)
