"""Plain-text preparation for PDF and DOCX sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from pathlib import PurePath

from docx import Document
from pypdf import PdfReader

from cv_normalizer.core.exceptions import DocumentReadError, UnsupportedDocumentError

logger = logging.getLogger(__name__)


class DocumentFormat(str, Enum):
    """Source document formats the pipeline can read."""

    PDF = "pdf"
    DOCX = "docx"

    @classmethod
    def from_path(cls, path: str | PurePath) -> DocumentFormat:
        """Resolve the format from a file name or storage path.

        Raises:
            UnsupportedDocumentError: For anything other than .pdf or .docx.
        """
        suffix = PurePath(str(path)).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            raise UnsupportedDocumentError(
                f"Unsupported file type '{path}'. Please upload a PDF or DOCX file."
            ) from None


@dataclass(frozen=True)
class SourceDocument:
    """Raw bytes of a CV together with their format."""

    content: bytes = field(repr=False)
    format: DocumentFormat
    name: str | None = None

    @classmethod
    def from_bytes(cls, content: bytes, name: str) -> SourceDocument:
        return cls(content=content, format=DocumentFormat.from_path(name), name=name)


def _pdf_text(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    parts = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(p for p in parts if p.strip())


def _docx_text(content: bytes) -> str:
    doc = Document(BytesIO(content))
    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def extract_text(document: SourceDocument) -> str:
    """Extract the plain text of a CV.

    Args:
        document: The source document.

    Returns:
        The document text, stripped.

    Raises:
        DocumentReadError: If the file cannot be parsed or has no text layer.
    """
    try:
        if document.format is DocumentFormat.PDF:
            text = _pdf_text(document.content)
        else:
            text = _docx_text(document.content)
    except Exception as e:
        raise DocumentReadError(f"Cannot read {document.format.value} document: {e}") from e

    text = text.strip()
    if not text:
        raise DocumentReadError(
            f"No text found in {document.name or document.format.value} document"
        )
    logger.debug("Extracted %d characters from %s", len(text), document.name)
    return text
