"""Quality scoring for extraction records."""

from ..config import ESSENTIAL_FIELDS, QUALITY_LEVELS
from ..models.quality import QualityLevel, QualityReport
from ..models.record import WIRE_NAMES, ExtractionRecord


def quality_level(quality: int) -> QualityLevel:
    """Map a 0-100 quality score to its tier."""
    for threshold, level in QUALITY_LEVELS:
        if quality >= threshold:
            return QualityLevel(level)
    return QualityLevel.POOR


def evaluate_quality(record: ExtractionRecord) -> QualityReport:
    """Score a record by how many essential fields are filled.

    Dates, weight and quantity are often absent on preliminary documents, so
    only order number, customer, product code, product name and material
    count.

    Args:
        record: The record to evaluate

    Returns:
        QualityReport with the score, tier and missing essential fields

    """
    missing = [
        WIRE_NAMES[name] for name in ESSENTIAL_FIELDS
        if not str(getattr(record, name)).strip()
    ]
    total = len(ESSENTIAL_FIELDS)
    filled = total - len(missing)
    quality = round(100 * filled / total)

    return QualityReport(
        quality=quality,
        filled_fields=filled,
        total_fields=total,
        level=quality_level(quality),
        missing_fields=missing,
    )
