"""Candidate profile-picture images embedded in a CV.

Small images (icons, logos) are dropped and the rest are normalized to
JPEG no larger than 800x800 so they can be sent to a vision model.
Extraction never raises: an image that cannot be decoded is skipped and an
unreadable document yields no candidates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from io import BytesIO

from docx import Document
from PIL import Image
from pypdf import PdfReader

from cv_normalizer.documents.text import DocumentFormat, SourceDocument

logger = logging.getLogger(__name__)

MAX_IMAGE_SIDE = 800
JPEG_QUALITY = 85


@dataclass(frozen=True)
class CandidateImage:
    """A normalized JPEG image found in a document."""

    data: bytes = field(repr=False)
    width: int
    height: int
    page: int | None = None


def _normalize(raw: bytes, min_side: int, page: int | None) -> CandidateImage | None:
    with Image.open(BytesIO(raw)) as img:
        if img.width < min_side or img.height < min_side:
            return None
        rgb = img.convert("RGB")
    rgb.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE))
    buffer = BytesIO()
    rgb.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return CandidateImage(data=buffer.getvalue(), width=rgb.width, height=rgb.height, page=page)


def _pdf_images(content: bytes, max_pages: int) -> Iterator[tuple[bytes, int | None]]:
    reader = PdfReader(BytesIO(content))
    for index, page in enumerate(reader.pages[:max_pages], start=1):
        try:
            images = list(page.images)
        except Exception as e:
            logger.warning("Cannot list images on page %d: %s", index, e)
            continue
        for image in images:
            yield image.data, index


def _docx_images(content: bytes) -> Iterator[tuple[bytes, int | None]]:
    doc = Document(BytesIO(content))
    for rel in doc.part.rels.values():
        if "image" in rel.reltype and not rel.is_external:
            yield rel.target_part.blob, None


def extract_candidate_images(
    document: SourceDocument,
    min_side: int = 100,
    max_pages: int = 2,
) -> list[CandidateImage]:
    """Collect images that could be a profile picture.

    Args:
        document: The source document.
        min_side: Images smaller than this on either side are ignored.
        max_pages: Number of leading PDF pages to scan.

    Returns:
        Normalized candidates in document order.
    """
    try:
        if document.format is DocumentFormat.PDF:
            raw_images = list(_pdf_images(document.content, max_pages))
        else:
            raw_images = list(_docx_images(document.content))
    except Exception as e:
        logger.warning("Cannot extract images from %s: %s", document.name, e)
        return []

    candidates: list[CandidateImage] = []
    for raw, page in raw_images:
        try:
            candidate = _normalize(raw, min_side, page)
        except Exception as e:
            logger.debug("Skipping undecodable image: %s", e)
            continue
        if candidate is not None:
            candidates.append(candidate)

    logger.debug("Found %d candidate images in %s", len(candidates), document.name)
    return candidates
