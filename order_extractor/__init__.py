"""Partner Order Extractor - adaptive field extraction for partner order documents."""

from .config import ESSENTIAL_FIELDS, MODEL_CONFIG, RECORD_FIELDS
from .exceptions import (
    DocumentLoadError,
    FormatNotFoundError,
    GenerationError,
    OrderExtractorError,
    PatternError,
    StorageError,
    ValidationError,
)

__version__ = "0.1.0"
__all__ = [
    "DocumentLoadError",
    "ESSENTIAL_FIELDS",
    "MODEL_CONFIG",
    "RECORD_FIELDS",
    "FormatNotFoundError",
    "GenerationError",
    "OrderExtractorError",
    "PatternError",
    "StorageError",
    "ValidationError",
]
