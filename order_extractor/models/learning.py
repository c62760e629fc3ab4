"""Learning data models for recording human corrections to extractions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .format import FieldPattern
from .record import ExtractionRecord, record_to_json_dict


class FeedbackType(str, Enum):
    """How a human reacted to an extraction."""

    CORRECTION = "correction"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class ContextSnippet:
    """Text surrounding one occurrence of a corrected value."""

    before: str
    after: str
    full_match: str

    def to_dict(self) -> dict[str, str]:
        return {"before": self.before, "after": self.after, "fullMatch": self.full_match}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextSnippet":
        return cls(
            before=data.get("before", ""),
            after=data.get("after", ""),
            full_match=data.get("fullMatch", data.get("full_match", "")),
        )


@dataclass(frozen=True)
class InferredPattern:
    """Candidate deterministic pattern proposed from a correction."""

    field: str
    label: str
    pattern: str

    def to_field_pattern(self) -> FieldPattern:
        return FieldPattern(field=self.field, pattern=self.pattern, flags=("IGNORECASE",))


@dataclass
class LearningEntry:
    """Represents a single stored (text, corrected record) pair."""

    id: int
    input_text: str
    correct_data: ExtractionRecord
    feedback_type: FeedbackType = FeedbackType.CORRECTION
    timestamp: datetime = field(default_factory=datetime.now)
    extraction_patterns: dict[str, list[ContextSnippet]] = field(default_factory=dict)

    # Confidence of the record the human reviewed, when known
    confidence: int | None = None

    @property
    def text_length(self) -> int:
        return len(self.input_text)

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to dictionary for persistence."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "inputText": self.input_text,
            "correctData": record_to_json_dict(self.correct_data),
            "feedbackType": self.feedback_type.value,
            "textLength": self.text_length,
            "confidence": self.confidence,
            "extractionPatterns": {
                name: [s.to_dict() for s in snippets]
                for name, snippets in self.extraction_patterns.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearningEntry":
        """Rebuild an entry from its persisted form.

        Raises:
            KeyError: If required keys are missing
            ValueError: If the entry is not shaped like a persisted entry, or
                the timestamp or feedback type is malformed

        """
        if not isinstance(data, dict):
            raise ValueError(f"Learning entry must be an object, got {type(data).__name__}")
        correct_data = data.get("correctData")
        if correct_data is not None and not isinstance(correct_data, dict):
            raise ValueError("correctData must be an object")
        patterns = data.get("extractionPatterns") or {}
        if not isinstance(patterns, dict) or not all(
            isinstance(snippets, list) and all(isinstance(s, dict) for s in snippets)
            for snippets in patterns.values()
        ):
            raise ValueError("extractionPatterns must map field names to lists of objects")

        confidence = data.get("confidence")
        return cls(
            id=int(data["id"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            input_text=_require_text(data["inputText"]),
            correct_data=ExtractionRecord.from_mapping(correct_data),
            feedback_type=FeedbackType(data.get("feedbackType", "correction")),
            confidence=int(confidence) if confidence is not None else None,
            extraction_patterns={
                name: [ContextSnippet.from_dict(s) for s in snippets]
                for name, snippets in patterns.items()
            },
        )


def _require_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"inputText must be a string, got {type(value).__name__}")
    return value


@dataclass
class LearningStats:
    """Summary of the learning history."""

    total_entries: int
    recent_entries: int
    average_confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalLearningEntries": self.total_entries,
            "recentLearningEntries": self.recent_entries,
            "averageConfidence": self.average_confidence,
        }
