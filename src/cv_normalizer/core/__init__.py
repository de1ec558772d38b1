"""Core configuration and exceptions."""

from cv_normalizer.core.config import ParsingConfig, UncertainField
from cv_normalizer.core.exceptions import (
    ConfigurationError,
    CVNormalizerError,
    DocumentError,
    DocumentReadError,
    ExtractionError,
    LLMError,
    ResponseParseError,
    UnsupportedDocumentError,
)

__all__ = [
    "ParsingConfig",
    "UncertainField",
    "CVNormalizerError",
    "DocumentError",
    "UnsupportedDocumentError",
    "DocumentReadError",
    "ExtractionError",
    "ResponseParseError",
    "LLMError",
    "ConfigurationError",
]
