"""Source document handling: text and embedded images."""

from cv_normalizer.documents.images import CandidateImage, extract_candidate_images
from cv_normalizer.documents.text import DocumentFormat, SourceDocument, extract_text

__all__ = [
    "CandidateImage",
    "DocumentFormat",
    "SourceDocument",
    "extract_candidate_images",
    "extract_text",
]
