"""Custom exceptions for cv-normalizer."""


class CVNormalizerError(Exception):
    """Base exception for all cv-normalizer errors."""

    pass


class DocumentError(CVNormalizerError):
    """Raised when the source document cannot be turned into text."""

    pass


class UnsupportedDocumentError(DocumentError):
    """Raised when the source document is neither PDF nor DOCX."""

    pass


class DocumentReadError(DocumentError):
    """Raised when the source document cannot be fetched or read."""

    pass


class ExtractionError(CVNormalizerError):
    """Raised when the extraction capability fails."""

    def __init__(
        self,
        message: str,
        raw_response: str | None = None,
        last_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_response = raw_response
        self.last_error = last_error


class ResponseParseError(ExtractionError):
    """Raised when the first-pass response is not a JSON object."""

    pass


class LLMError(ExtractionError):
    """Raised when the LLM client fails or returns an unusable response."""

    pass


class ConfigurationError(CVNormalizerError):
    """Raised when parser or option configuration is invalid."""

    pass
