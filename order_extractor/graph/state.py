from typing import Any, TypedDict

from ..models.quality import QualityReport
from ..models.record import ExtractionRecord


class ExtractionState(TypedDict):
    """State that flows through the LangGraph extraction workflow."""

    # Input fields
    document_id: str | None
    content: str
    context: dict[str, Any]

    # Classification results
    format_id: str | None
    format_confidence: float | None
    matched_indicators: list[str] | None

    # Extraction results
    deterministic_record: ExtractionRecord | None
    record: ExtractionRecord | None
    quality: QualityReport | None

    # Generative second pass
    escalated: bool | None
    generation_status: str | None

    # Workflow control
    error: str | None
