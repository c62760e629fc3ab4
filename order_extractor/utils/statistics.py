"""Utility functions for calculating batch extraction statistics."""

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from order_extractor.processing.batch_processor import BatchResult


@dataclass
class ExtractionStatistics:
    """Container for batch extraction statistics."""

    total: int
    errors: int
    escalated: int
    average_quality: float
    by_method: dict[str, int] = field(default_factory=dict)
    by_level: dict[str, int] = field(default_factory=dict)
    by_format: dict[str, int] = field(default_factory=dict)

    def to_display_string(self) -> str:
        """Format statistics for display."""
        methods = ", ".join(f"{k}: {v}" for k, v in sorted(self.by_method.items())) or "none"
        return (
            f"Total: {self.total} | Errors: {self.errors} | Escalated: {self.escalated} | "
            f"Avg quality: {self.average_quality:.0f}% | Methods: {methods}"
        )


def calculate_extraction_statistics(
    results: list["BatchResult"],
) -> ExtractionStatistics:
    """Calculate statistics for a list of batch results.

    Args:
        results: Batch results to analyze

    Returns:
        ExtractionStatistics object containing calculated statistics

    """
    completed = [r.result for r in results if r.result is not None]
    errors = len(results) - len(completed)

    if not completed:
        return ExtractionStatistics(
            total=len(results),
            errors=errors,
            escalated=0,
            average_quality=0.0,
        )

    return ExtractionStatistics(
        total=len(results),
        errors=errors,
        escalated=sum(1 for r in completed if r.escalated),
        average_quality=sum(r.quality.quality for r in completed) / len(completed),
        by_method=dict(Counter(r.record.extraction_method.value for r in completed)),
        by_level=dict(Counter(r.quality.level.value for r in completed)),
        by_format=dict(Counter(r.format_id for r in completed)),
    )
