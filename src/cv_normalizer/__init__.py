"""
cv-normalizer: LLM-driven CV parsing with deterministic normalization.
"""

from seeds_clients.core.base_client import BaseClient

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
from cv_normalizer.core.jobs import (
    DocumentStorage,
    JobOutcome,
    JobStatus,
    JobStore,
    ParsingJobRunner,
)
from cv_normalizer.core.parser import CVParser, parse_json_response
from cv_normalizer.documents import (
    CandidateImage,
    DocumentFormat,
    SourceDocument,
    extract_candidate_images,
    extract_text,
)
from cv_normalizer.normalization import (
    InferenceEngine,
    MatchOutcome,
    MatchStep,
    RecordValidator,
    match,
    match_detailed,
    merge_functional_expertise,
    total_months,
    years_from_months,
)
from cv_normalizer.options import FormOptions, GuardRule, Option, OptionSet
from cv_normalizer.prompts.builder import PromptBuilder
from cv_normalizer.results.types import FieldRefinement, ParseResult, ProfilePicture
from cv_normalizer.schemas import CandidateRecord, EducationEntry, ExperienceEntry
from cv_normalizer.vision import PictureVerdict, ProfilePictureFinder

__version__ = "0.1.0"

__all__ = [
    # Core
    "CVParser",
    "ParsingConfig",
    "UncertainField",
    "BaseClient",
    "parse_json_response",
    # Jobs
    "ParsingJobRunner",
    "DocumentStorage",
    "JobStore",
    "JobOutcome",
    "JobStatus",
    # Exceptions
    "CVNormalizerError",
    "DocumentError",
    "UnsupportedDocumentError",
    "DocumentReadError",
    "ExtractionError",
    "ResponseParseError",
    "LLMError",
    "ConfigurationError",
    # Documents
    "SourceDocument",
    "DocumentFormat",
    "CandidateImage",
    "extract_text",
    "extract_candidate_images",
    # Normalization
    "RecordValidator",
    "InferenceEngine",
    "MatchOutcome",
    "MatchStep",
    "match",
    "match_detailed",
    "merge_functional_expertise",
    "total_months",
    "years_from_months",
    # Options
    "FormOptions",
    "OptionSet",
    "Option",
    "GuardRule",
    # Prompts
    "PromptBuilder",
    # Results
    "ParseResult",
    "FieldRefinement",
    "ProfilePicture",
    # Schemas
    "CandidateRecord",
    "EducationEntry",
    "ExperienceEntry",
    # Vision
    "ProfilePictureFinder",
    "PictureVerdict",
]
