"""Format classification by indicator matching."""

import logging
from dataclasses import dataclass, field

from ..models.format import FormatDefinition
from .format_registry import FormatRegistry

logger = logging.getLogger(__name__)


@dataclass
class FormatCandidate:
    """A format with at least one matching indicator."""

    format: FormatDefinition
    match_count: int
    confidence: float
    matched_indicators: list[str] = field(default_factory=list)


@dataclass
class ClassificationResult:
    """Selected format plus the diagnostic trail that led to it."""

    format: FormatDefinition
    confidence: float = 0.0
    match_count: int = 0
    matched_indicators: list[str] = field(default_factory=list)
    candidates: list[FormatCandidate] = field(default_factory=list)

    @property
    def is_generic(self) -> bool:
        return self.format.is_generic


class FormatClassifier:
    """Scores every registered format against a text and picks the best.

    ``confidence = matched / indicator_count * priority``. Candidates are
    sorted with a stable sort over registration order, so on a tie the format
    registered first wins. No match at all resolves to the generic format.
    """

    def __init__(self, registry: FormatRegistry) -> None:
        self.registry = registry

    def classify(self, text: str) -> ClassificationResult:
        """Classify a document text.

        Args:
            text: Plain text of the order document

        Returns:
            ClassificationResult with the selected format and matched indicators

        """
        candidates: list[FormatCandidate] = []

        for fmt in self.registry.all():
            if not fmt.indicators:
                continue

            matched = [ind.pattern for ind in fmt.indicators if ind.search(text)]
            if not matched:
                continue

            confidence = (len(matched) / len(fmt.indicators)) * fmt.priority
            logger.debug(f"{fmt.id}: {len(matched)}/{len(fmt.indicators)} indicators matched {matched}")
            if confidence > 0:
                candidates.append(FormatCandidate(
                    format=fmt,
                    match_count=len(matched),
                    confidence=confidence,
                    matched_indicators=matched,
                ))

        candidates.sort(key=lambda c: c.confidence, reverse=True)

        if not candidates:
            logger.debug("No format indicators matched, using generic format")
            return ClassificationResult(format=self.registry.generic)

        best = candidates[0]
        logger.info(f"Selected format {best.format.id} (score {best.confidence:.2f}, "
                    f"{len(candidates)} candidates)")
        return ClassificationResult(
            format=best.format,
            confidence=best.confidence,
            match_count=best.match_count,
            matched_indicators=list(best.matched_indicators),
            candidates=candidates,
        )

    def select(self, text: str) -> FormatDefinition:
        """Return only the best-matching format."""
        return self.classify(text).format
