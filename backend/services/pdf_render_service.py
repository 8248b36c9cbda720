"""
PDF rendering for generated filing documents.

Document content is line-based markup:
    === Title ===         heading
    --- Section ---       subheading
    - item                list item
    Key: value            labelled value
    anything else         paragraph

Rendering uses reportlab; bundling several rendered documents into one
download uses pypdf.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import List, Optional
from xml.sax.saxutils import escape

from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from core.errors import RenderError
from core.logging import log_timing
from filing.collaborators import DocumentRenderer

logger = logging.getLogger(__name__)


@dataclass
class ContentItem:
    type: str  # heading1, heading2, listItem, keyValue, paragraph
    text: Optional[str] = None
    key: Optional[str] = None
    value: Optional[str] = None


def parse_markup(content: str) -> List[ContentItem]:
    items: List[ContentItem] = []
    for raw in content.splitlines():
        line = raw.strip()
        if not line:
            continue

        if line.startswith("===") and line.endswith("==="):
            items.append(ContentItem("heading1", text=line.strip("=").strip()))
        elif line.startswith("---") and line.endswith("---"):
            items.append(ContentItem("heading2", text=line.strip("-").strip()))
        elif line.startswith("- "):
            items.append(ContentItem("listItem", text=line[2:]))
        elif ":" in line:
            key, value = line.split(":", 1)
            items.append(ContentItem("keyValue", key=key.strip(), value=value.strip()))
        else:
            items.append(ContentItem("paragraph", text=line))
    return items


class PdfDocumentRenderer(DocumentRenderer):
    """Renders document markup to a letter-size PDF."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.styles = {
            "heading1": ParagraphStyle(
                "FilingTitle", parent=styles["Heading1"], alignment=1, spaceAfter=12
            ),
            "heading2": styles["Heading2"],
            "listItem": ParagraphStyle("FilingListItem", parent=styles["Normal"], leftIndent=18),
            "keyValue": styles["Normal"],
            "paragraph": ParagraphStyle("FilingBody", parent=styles["Normal"], spaceAfter=6),
        }

    def _story(self, items: List[ContentItem]) -> list:
        story = []
        for item in items:
            style = self.styles[item.type]
            if item.type == "keyValue":
                text = f"<b>{escape(item.key)}:</b> {escape(item.value)}"
            elif item.type == "listItem":
                text = f"&bull; {escape(item.text)}"
            else:
                text = escape(item.text)
            story.append(Paragraph(text, style))
            if item.type == "heading1":
                story.append(Spacer(1, 12))
        return story

    def render_sync(self, content: str) -> bytes:
        items = parse_markup(content)
        if not items:
            raise RenderError("Document has no content")

        buffer = io.BytesIO()
        try:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=letter,
                leftMargin=inch,
                rightMargin=inch,
                topMargin=inch,
                bottomMargin=inch,
            )
            doc.build(self._story(items))
        except Exception as e:
            logger.error(f"PDF rendering failed: {type(e).__name__}: {e}")
            raise RenderError(f"PDF rendering failed: {type(e).__name__}") from e
        return buffer.getvalue()

    async def render(self, content: str) -> bytes:
        title = content.split("\n", 1)[0].strip("= ").strip() or "document"
        with log_timing(f"render {title}", logger):
            return await asyncio.to_thread(self.render_sync, content)


def bundle_pdfs(documents: List[bytes]) -> bytes:
    """Concatenate rendered PDFs into a single file."""
    if not documents:
        raise RenderError("No documents to bundle")

    writer = PdfWriter()
    try:
        for data in documents:
            reader = PdfReader(io.BytesIO(data))
            for page in reader.pages:
                writer.add_page(page)
        output_stream = io.BytesIO()
        writer.write(output_stream)
    except Exception as e:
        logger.error(f"PDF bundling failed: {type(e).__name__}: {e}")
        raise RenderError("Could not bundle documents") from e
    return output_stream.getvalue()
