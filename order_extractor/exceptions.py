"""Custom exceptions for the partner order extractor."""


class OrderExtractorError(Exception):
    """Base exception for the partner order extractor."""

    pass


class FormatNotFoundError(OrderExtractorError):
    """Raised when a format id is not registered."""

    pass


class PatternError(OrderExtractorError):
    """Raised when a pattern or indicator cannot be compiled."""

    pass


class ValidationError(OrderExtractorError):
    """Raised when input validation fails."""

    pass


class StorageError(OrderExtractorError):
    """Raised when the key-value store cannot be read or written."""

    pass


class GenerationError(OrderExtractorError):
    """Raised when the generation capability fails to produce a response."""

    pass


class DocumentLoadError(OrderExtractorError):
    """Raised when a document text file cannot be loaded."""

    pass
