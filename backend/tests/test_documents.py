"""
Tests for the document catalogue, markup builders and PDF rendering.
"""

import io

import pytest
from pypdf import PdfReader

from conftest import FakeRenderer
from core.errors import RenderError
from filing.documents import (
    PATENT_DOCUMENTS,
    TRADEMARK_DOCUMENTS,
    DocumentStatus,
    generate_documents,
    templates_for,
)
from filing.records import FilingType, empty_record, merge_record
from filing.scoring import document_score
from services.pdf_render_service import PdfDocumentRenderer, bundle_pdfs, parse_markup


class TestCatalogue:
    def test_templates_per_type(self):
        assert templates_for(FilingType.PATENT) is PATENT_DOCUMENTS
        assert templates_for(FilingType.TRADEMARK) is TRADEMARK_DOCUMENTS
        assert templates_for(FilingType.UNSET) == ()

    def test_disclosure_statement_optional(self):
        optional = [template.name for template in PATENT_DOCUMENTS if not template.required]
        assert optional == ["Information Disclosure Statement"]


class TestGenerateDocuments:
    @pytest.mark.asyncio
    async def test_missing_fields_leave_pending(self, renderer):
        record = merge_record(empty_record(FilingType.PATENT), {"title": "Widget"})
        documents = await generate_documents(FilingType.PATENT, record, renderer)

        provisional = documents[0]
        assert provisional.status == DocumentStatus.PENDING
        assert provisional.detail == "Missing: inventor_names, brief_summary"
        assert document_score(documents) == 0
        assert renderer.rendered == []

    @pytest.mark.asyncio
    async def test_generated_documents_hold_content(self, renderer, trademark_basic_info):
        record = merge_record(empty_record(FilingType.TRADEMARK), {
            **trademark_basic_info,
            "goodsServices": [{"description": "Soft drinks", "niceClass": 32}],
        })
        documents = await generate_documents(FilingType.TRADEMARK, record, renderer)

        generated = [doc.name for doc in documents if doc.generated]
        assert generated == ["Trademark Application", "Goods and Services Description"]
        assert documents[0].content == b"%PDF-fake Trademark Application"
        assert document_score(documents) == 50

    @pytest.mark.asyncio
    async def test_render_failure_is_pending(self, trademark_basic_info):
        record = merge_record(empty_record(FilingType.TRADEMARK), trademark_basic_info)
        documents = await generate_documents(
            FilingType.TRADEMARK, record, FakeRenderer(fail_on={"Trademark Application"})
        )
        assert documents[0].status == DocumentStatus.PENDING
        assert documents[0].detail == "Rendering failed"

    @pytest.mark.asyncio
    async def test_unexpected_renderer_error_stays_with_one_document(self, trademark_basic_info):
        class BrokenRenderer(FakeRenderer):
            async def render(self, content):
                if content.startswith("=== Trademark Application"):
                    raise RuntimeError("font cache corrupted")
                return await super().render(content)

        record = merge_record(empty_record(FilingType.TRADEMARK), {
            **trademark_basic_info,
            "goodsServices": [{"description": "Soft drinks", "niceClass": 32}],
        })
        documents = await generate_documents(FilingType.TRADEMARK, record, BrokenRenderer())
        assert documents[0].detail == "Rendering failed"
        assert documents[1].generated

    @pytest.mark.asyncio
    async def test_specimen_not_required_for_intent_to_use(self, renderer, trademark_basic_info):
        record = merge_record(empty_record(FilingType.TRADEMARK), {
            **trademark_basic_info,
            "filingBasis": "intent",
            "goodsServices": [{"description": "Soft drinks", "niceClass": 32}],
        })
        documents = await generate_documents(FilingType.TRADEMARK, record, renderer)
        specimen = next(doc for doc in documents if doc.name == "Specimen of Use")
        assert specimen.required is False
        # 2 of the 3 remaining required documents
        assert document_score(documents) == 67

    @pytest.mark.asyncio
    async def test_specimen_required_when_relaxation_disabled(self, renderer, trademark_basic_info, monkeypatch):
        import core.config as config

        monkeypatch.setattr(config, "INTENT_TO_USE_RELAXES_USAGE_EVIDENCE", False)
        record = merge_record(empty_record(FilingType.TRADEMARK), {**trademark_basic_info, "filingBasis": "intent"})
        documents = await generate_documents(FilingType.TRADEMARK, record, renderer)
        assert next(doc for doc in documents if doc.name == "Specimen of Use").required is True

    @pytest.mark.asyncio
    async def test_no_record(self, renderer):
        documents = await generate_documents(FilingType.PATENT, None, renderer)
        assert all(doc.detail == "No application data" for doc in documents)

    @pytest.mark.asyncio
    async def test_content_not_serialized(self, renderer, trademark_basic_info):
        record = merge_record(empty_record(FilingType.TRADEMARK), trademark_basic_info)
        documents = await generate_documents(FilingType.TRADEMARK, record, renderer)
        assert "content" not in documents[0].model_dump(by_alias=True)

    def test_claims_markup(self):
        record = merge_record(empty_record(FilingType.PATENT), {"claims": [
            {"id": "1", "text": "A controller."},
            {"id": "2", "text": "The controller of claim 1.", "kind": "dependent", "parentId": "1"},
        ]})
        template = next(t for t in PATENT_DOCUMENTS if t.name == "Patent Claims")
        content = template.build(record)
        assert content.splitlines() == [
            "=== Patent Claims ===",
            "- Claim 1 A controller.",
            "- Claim 2 (dependent on claim 1) The controller of claim 1.",
        ]


class TestMarkup:
    def test_parse_markup(self):
        items = parse_markup(
            "=== Trademark Application ===\n"
            "--- Self-made Mark ---\n"
            "- Website\n"
            "Mark: FIZZWELL\n"
            "\n"
            "Plain paragraph"
        )
        assert [item.type for item in items] == [
            "heading1", "heading2", "listItem", "keyValue", "paragraph",
        ]
        assert items[1].text == "Self-made Mark"
        assert (items[3].key, items[3].value) == ("Mark", "FIZZWELL")


class TestPdfRenderer:
    @pytest.mark.asyncio
    async def test_render_pdf(self):
        pdf = await PdfDocumentRenderer().render("=== Patent Claims ===\n- Claim 1 A <controller> & valve.")
        assert pdf.startswith(b"%PDF")

    def test_empty_content_rejected(self):
        with pytest.raises(RenderError):
            PdfDocumentRenderer().render_sync("   \n")

    def test_bundle(self):
        renderer = PdfDocumentRenderer()
        first = renderer.render_sync("=== One ===")
        second = renderer.render_sync("=== Two ===")
        bundled = bundle_pdfs([first, second])
        assert len(PdfReader(io.BytesIO(bundled)).pages) == 2

    def test_bundle_nothing(self):
        with pytest.raises(RenderError):
            bundle_pdfs([])

    def test_bundle_garbage(self):
        with pytest.raises(RenderError):
            bundle_pdfs([b"not a pdf"])
