"""Quality tier types for extraction records."""

from dataclasses import dataclass, field
from enum import Enum


class QualityLevel(str, Enum):
    """Coarse bucket for how many essential fields were filled."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class QualityReport:
    """Result of scoring an extraction record."""

    quality: int
    filled_fields: int
    total_fields: int
    level: QualityLevel
    missing_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "quality": self.quality,
            "filledFields": self.filled_fields,
            "totalFields": self.total_fields,
            "missingFields": list(self.missing_fields),
            "level": self.level.value,
        }
