"""
Sessions router - Filing wizard sessions, uploads, documents, suggestions
and saved applications.

Routine rejections (incomplete step, invalid field values) return 200 with
``result.accepted = false``; only faults map to error status codes.
"""

import base64
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response

import core.config as config
from api.schemas import (
    ClaimCreate,
    FieldPatchRequest,
    FilingTypeRequest,
    GoodsServiceCreate,
    PriorArtCreate,
    SaveRequest,
    SessionResponse,
    SuggestionRequest,
)
from core import (
    get_logger,
    handle_exception,
    limiter,
    RateLimits,
    raise_validation_error,
    ApplicationNotFoundError,
    FilingError,
    NotFoundError,
)
from filing.collaborators import BlobStore, DocumentRenderer, SuggestionProvider
from filing.persistence import ApplicationSync
from filing.session import ExportDocument, FilingSessionController, TransitionResult
from services.application_store import SqlApplicationStore
from services.blob_store import LocalBlobStore
from services.llm_service import GeminiSuggestionProvider
from services.pdf_render_service import PdfDocumentRenderer, bundle_pdfs
from services.session_registry import SessionRegistry
from utils.file_upload import read_upload
from utils.validation import ValidationError as InputValidationError, validate_identifier

logger = get_logger(__name__)
router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================

@lru_cache()
def get_registry() -> SessionRegistry:
    return SessionRegistry()


@lru_cache()
def get_application_sync() -> ApplicationSync:
    from sql_db import init_db

    init_db()
    return ApplicationSync(SqlApplicationStore())


def get_suggestion_provider() -> SuggestionProvider:
    return GeminiSuggestionProvider()


def get_renderer() -> DocumentRenderer:
    return PdfDocumentRenderer()


def get_blob_store() -> BlobStore:
    return LocalBlobStore()


def _checked_id(value: str, field: str) -> str:
    try:
        return validate_identifier(value, field)
    except InputValidationError as e:
        raise_validation_error(field, e.message, value)


def get_controller(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> FilingSessionController:
    try:
        return registry.get(_checked_id(session_id, "session_id"))
    except FilingError as e:
        raise handle_exception(e)


def _respond(controller: FilingSessionController, result: TransitionResult) -> Dict[str, Any]:
    return {"result": result.to_dict(), "session": controller.snapshot()}


# =============================================================================
# Session lifecycle
# =============================================================================

@router.post("/sessions", response_model=SessionResponse, status_code=201)
@limiter.limit(RateLimits.SESSION)
async def create_session(request: Request, registry: SessionRegistry = Depends(get_registry)):
    """Start a new, unstarted filing session."""
    controller = registry.create()
    return _respond(controller, TransitionResult.ok())


@router.get("/sessions/{session_id}")
async def get_session(controller: FilingSessionController = Depends(get_controller)):
    return controller.snapshot()


@router.delete("/sessions/{session_id}")
async def close_session(
    controller: FilingSessionController = Depends(get_controller),
    registry: SessionRegistry = Depends(get_registry),
):
    await registry.close(controller.session_id)
    return {"status": "closed", "session_id": controller.session_id}


@router.post("/sessions/{session_id}/filing-type", response_model=SessionResponse)
async def select_filing_type(
    req: FilingTypeRequest,
    controller: FilingSessionController = Depends(get_controller),
):
    """Choose patent or trademark. Changing the type discards all answers."""
    return _respond(controller, controller.select_filing_type(req.filing_type))


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_session(controller: FilingSessionController = Depends(get_controller)):
    return _respond(controller, controller.reset())


# =============================================================================
# Navigation and validation
# =============================================================================

@router.post("/sessions/{session_id}/advance", response_model=SessionResponse)
async def advance_step(controller: FilingSessionController = Depends(get_controller)):
    return _respond(controller, controller.advance_step())


@router.post("/sessions/{session_id}/retreat", response_model=SessionResponse)
async def retreat_step(controller: FilingSessionController = Depends(get_controller)):
    return _respond(controller, controller.retreat_step())


@router.get("/sessions/{session_id}/validation")
async def validate_step(controller: FilingSessionController = Depends(get_controller)):
    """Step check for the current step."""
    return controller.validate_current_step().to_dict()


@router.get("/sessions/{session_id}/compliance")
async def compliance_report(controller: FilingSessionController = Depends(get_controller)):
    """Per-jurisdiction requirement checks with the overall score."""
    return controller.compliance_report().model_dump(by_alias=True, mode="json")


# =============================================================================
# Record edits
# =============================================================================

@router.patch("/sessions/{session_id}/fields", response_model=SessionResponse)
async def merge_fields(
    req: FieldPatchRequest,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.merge_fields(req.fields))


@router.post("/sessions/{session_id}/claims", response_model=SessionResponse)
async def add_claim(
    req: ClaimCreate,
    controller: FilingSessionController = Depends(get_controller),
):
    result = controller.add_claim(
        req.text, kind=req.kind, parent_id=req.parent_id, claim_id=req.claim_id
    )
    return _respond(controller, result)


@router.delete("/sessions/{session_id}/claims/{claim_id}", response_model=SessionResponse)
async def remove_claim(
    claim_id: str,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.remove_claim(claim_id))


@router.post("/sessions/{session_id}/prior-art", response_model=SessionResponse)
async def add_prior_art(
    req: PriorArtCreate,
    controller: FilingSessionController = Depends(get_controller),
):
    result = controller.add_prior_art(req.reference, type=req.type, relevance=req.relevance)
    return _respond(controller, result)


@router.delete("/sessions/{session_id}/prior-art/{index}", response_model=SessionResponse)
async def remove_prior_art(
    index: int,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.remove_prior_art(index))


@router.post("/sessions/{session_id}/goods-services", response_model=SessionResponse)
async def add_goods_service(
    req: GoodsServiceCreate,
    controller: FilingSessionController = Depends(get_controller),
):
    result = controller.add_goods_service(
        req.description,
        req.nice_class,
        industry=req.industry,
        target_market=req.target_market,
    )
    return _respond(controller, result)


@router.delete("/sessions/{session_id}/goods-services/{index}", response_model=SessionResponse)
async def remove_goods_service(
    index: int,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.remove_goods_service(index))


# =============================================================================
# Uploads
# =============================================================================

@router.post("/sessions/{session_id}/uploads", response_model=SessionResponse)
@limiter.limit(RateLimits.UPLOAD)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    category: str = Form(...),
    controller: FilingSessionController = Depends(get_controller),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Attach a supporting document (drawings, specimens, ...) to the session."""
    data = await read_upload(file, config.MAX_UPLOAD_SIZE_MB)
    result = await controller.upload_file(
        blob_store,
        data,
        name=file.filename,
        media_type=file.content_type or "",
        category=category,
    )
    return _respond(controller, result)


@router.delete("/sessions/{session_id}/uploads/{upload_id}", response_model=SessionResponse)
async def remove_upload(
    upload_id: str,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.remove_upload(upload_id))


# =============================================================================
# Documents and suggestions
# =============================================================================

@router.post("/sessions/{session_id}/documents")
@limiter.limit(RateLimits.GENERATE)
async def generate_documents(
    request: Request,
    controller: FilingSessionController = Depends(get_controller),
    renderer: DocumentRenderer = Depends(get_renderer),
):
    """Generate the filing documents and return each generated PDF as base64."""
    result = await controller.request_documents(renderer)
    documents = []
    for document in controller.session.documents:
        entry = document.model_dump(by_alias=True, mode="json")
        if document.content:
            entry["pdfBase64"] = base64.b64encode(document.content).decode("utf-8")
        documents.append(entry)
    return {
        "result": result.to_dict(),
        "documentScore": controller.session.document_score,
        "readinessScore": controller.readiness_score,
        "documents": documents,
    }


@router.get("/sessions/{session_id}/documents/bundle")
async def download_documents(controller: FilingSessionController = Depends(get_controller)):
    """All generated documents as one PDF."""
    rendered = [doc.content for doc in controller.session.documents if doc.generated and doc.content]
    if not rendered:
        raise handle_exception(NotFoundError("No generated documents"))
    try:
        pdf = bundle_pdfs(rendered)
    except FilingError as e:
        raise handle_exception(e)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{controller.filing_type.value}-application.pdf"'},
    )


@router.post("/sessions/{session_id}/suggestions", response_model=SessionResponse)
@limiter.limit(RateLimits.GENERATE)
async def request_suggestions(
    request: Request,
    req: SuggestionRequest,
    controller: FilingSessionController = Depends(get_controller),
    provider: SuggestionProvider = Depends(get_suggestion_provider),
):
    """Ask the suggestion provider for ideas; they land in the target field."""
    context = {"instructions": req.instructions} if req.instructions else None
    result = await controller.request_suggestions(provider, req.target_field, context)
    return _respond(controller, result)


# =============================================================================
# Export / restore
# =============================================================================

@router.get("/sessions/{session_id}/export")
async def export_session(controller: FilingSessionController = Depends(get_controller)):
    """Download my application: the record as a JSON document."""
    return controller.export_document()


@router.post("/sessions/{session_id}/restore", response_model=SessionResponse)
async def restore_session(
    document: ExportDocument,
    controller: FilingSessionController = Depends(get_controller),
):
    return _respond(controller, controller.restore(document))


# =============================================================================
# Saved applications
# =============================================================================

@router.post("/sessions/{session_id}/save", response_model=SessionResponse)
async def save_session(
    req: SaveRequest,
    controller: FilingSessionController = Depends(get_controller),
    sync: ApplicationSync = Depends(get_application_sync),
):
    result = await sync.save(controller, req.owner_id)
    response = _respond(controller, result)
    response["session"]["applicationId"] = sync.application_id(controller)
    return response


@router.post("/sessions/{session_id}/save-and-advance", response_model=SessionResponse)
async def save_and_advance(
    req: SaveRequest,
    controller: FilingSessionController = Depends(get_controller),
    sync: ApplicationSync = Depends(get_application_sync),
):
    """Advance to the next step only once the current answers are saved."""
    result = await sync.save_and_advance(controller, req.owner_id)
    response = _respond(controller, result)
    response["session"]["applicationId"] = sync.application_id(controller)
    return response


@router.post("/sessions/{session_id}/load/{application_id}", response_model=SessionResponse)
async def load_application(
    application_id: str,
    controller: FilingSessionController = Depends(get_controller),
    sync: ApplicationSync = Depends(get_application_sync),
):
    try:
        result = await sync.load(_checked_id(application_id, "application_id"), controller)
    except FilingError as e:
        raise handle_exception(e)
    return _respond(controller, result)


@router.get("/applications")
async def list_applications(
    owner_id: str,
    sync: ApplicationSync = Depends(get_application_sync),
):
    try:
        applications = await sync.list_for_owner(_checked_id(owner_id, "owner_id"))
    except FilingError as e:
        raise handle_exception(e)
    return {"applications": applications}


@router.delete("/applications/{application_id}")
async def delete_application(
    application_id: str,
    sync: ApplicationSync = Depends(get_application_sync),
):
    try:
        deleted = await sync.delete(_checked_id(application_id, "application_id"))
        if not deleted:
            raise ApplicationNotFoundError(application_id)
    except FilingError as e:
        raise handle_exception(e)
    return {"status": "deleted", "application_id": application_id}
