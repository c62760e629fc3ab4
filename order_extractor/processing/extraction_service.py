"""Extraction service wiring the registry, workflow and learning loop."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import DEFAULT_STORAGE_PATH, ESCALATION_LEVELS
from ..graph.workflow import build_workflow, run_workflow
from ..models.format import FieldPattern
from ..models.learning import FeedbackType, InferredPattern, LearningEntry
from ..models.quality import QualityReport
from ..models.record import ExtractionRecord
from ..services.generation_service import GenerationService, create_generation_service
from ..services.kv_store import KeyValueStore, SQLiteKeyValueStore
from ..utils.document_loader import split_pages
from .audit_manager import AuditManager
from .field_extractor import DeterministicExtractor
from .format_classifier import FormatClassifier
from .format_registry import FormatRegistry
from .format_settings import FormatSettings
from .generative_adapter import GenerativeExtractionAdapter
from .learning_store import LearningStore
from .pattern_inference import infer_patterns
from .quality_evaluator import evaluate_quality

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Final record of one extraction run plus how it was reached."""

    record: ExtractionRecord
    quality: QualityReport
    format_id: str
    matched_indicators: list[str] = field(default_factory=list)
    escalated: bool = False
    generation_status: str | None = None
    error: str | None = None
    page: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record": self.record.to_dict(),
            "quality": self.quality.to_dict(),
            "formatId": self.format_id,
            "matchedIndicators": list(self.matched_indicators),
            "escalated": self.escalated,
            "generationStatus": self.generation_status,
            "error": self.error,
            "page": self.page,
        }


class OrderExtractionService:
    """Entry point for extracting order records and learning from corrections.

    Construct once per process and share it; the registry and learning store
    it holds serialize their own writes.
    """

    def __init__(
        self,
        registry: FormatRegistry,
        learning_store: LearningStore,
        adapter: GenerativeExtractionAdapter,
        audit_manager: AuditManager | None = None,
        format_settings: FormatSettings | None = None,
        escalation_levels: Iterable[str] = ESCALATION_LEVELS,
    ) -> None:
        self.registry = registry
        self.learning_store = learning_store
        self.adapter = adapter
        self.audit_manager = audit_manager
        self.format_settings = format_settings
        self.classifier = FormatClassifier(registry)
        self.extractor = DeterministicExtractor()
        self.workflow = build_workflow(
            self.classifier,
            self.extractor,
            adapter,
            audit_manager=audit_manager,
            escalation_levels=escalation_levels,
        )

    def extract(self, text: str, context: dict[str, Any] | None = None,
                document_id: str | None = None, page: int | None = None) -> ExtractionResult:
        """Extract an order record from document text.

        Args:
            text: Plain text of the order document
            context: Optional hints; ``partner_hint`` names a format id to use
            document_id: Optional identifier for logs and audit
            page: Page number when the text is one page of a multi-order
                document; the order number gets a ``-P<page>`` suffix

        Returns:
            ExtractionResult whose record is always fully populated

        """
        state = run_workflow(self.workflow, text, document_id, context)

        record = state.get("record") or ExtractionRecord()
        quality = state.get("quality") or evaluate_quality(record)
        if page is not None:
            record = record.corrected(
                order_number=f"{record.order_number}-P{page}" if record.order_number else "",
                notes=f"Page {page}" + (f" - {record.notes}" if record.notes else ""),
            )

        result = ExtractionResult(
            record=record,
            quality=quality,
            format_id=state.get("format_id") or record.detected_format,
            matched_indicators=list(state.get("matched_indicators") or []),
            escalated=bool(state.get("escalated")),
            generation_status=state.get("generation_status"),
            error=state.get("error"),
            page=page,
        )

        if self.audit_manager:
            self.audit_manager.log_extraction(
                document_id=document_id,
                format_id=result.format_id,
                method=record.extraction_method.value,
                quality=quality.quality,
                level=quality.level.value,
            )

        logger.info(f"Extracted {document_id or 'document'}: format {result.format_id}, "
                    f"{record.extraction_method.value}, quality {quality.quality} ({quality.level.value})")
        return result

    def extract_pages(self, text: str, context: dict[str, Any] | None = None,
                      document_id: str | None = None) -> list[ExtractionResult]:
        """Extract one order per page of a form-feed separated document.

        A document with a single non-blank page yields one untagged result.
        """
        pages = split_pages(text)
        if len(pages) <= 1:
            return [self.extract(text, context, document_id)]

        logger.info(f"Extracting {len(pages)} pages of {document_id or 'document'} separately")
        return [
            self.extract(page_text, context, f"{document_id or 'document'}#p{number}", page=number)
            for number, page_text in pages
        ]

    def record_correction(
        self,
        text: str,
        corrected: ExtractionRecord,
        original: ExtractionRecord | None = None,
        feedback_type: FeedbackType | str | None = None,
        document_id: str | None = None,
    ) -> LearningEntry:
        """Store a human-reviewed record in the learning history.

        When no feedback type is given, an unchanged record counts as a
        confirmation and anything else as a correction.

        Args:
            text: The document text
            corrected: The human-approved record
            original: The record the human reviewed, if available
            feedback_type: Explicit feedback type
            document_id: Optional identifier for audit

        Returns:
            The stored LearningEntry

        """
        if feedback_type is None:
            unchanged = original is not None and original.field_values() == corrected.field_values()
            feedback_type = FeedbackType.CONFIRMATION if unchanged else FeedbackType.CORRECTION

        entry = self.learning_store.add_entry(
            text,
            corrected,
            feedback_type=feedback_type,
            confidence=original.confidence if original is not None else None,
        )

        if self.audit_manager:
            self.audit_manager.log_learning(
                document_id=document_id,
                feedback_type=entry.feedback_type.value,
                entry_id=entry.id,
                pattern_fields=sorted(entry.extraction_patterns),
            )
        return entry

    def propose_patterns(self, text: str,
                         corrected: ExtractionRecord) -> dict[str, list[InferredPattern]]:
        """Infer candidate deterministic patterns for human approval."""
        return infer_patterns(text, corrected)

    def approve_patterns(self, format_id: str,
                         patterns: dict[str, list[InferredPattern | FieldPattern]],
                         persist: bool = True) -> int:
        """Append approved patterns to a format and optionally persist them.

        Returns:
            Number of patterns appended to the registry

        Raises:
            FormatNotFoundError: If the format is not registered

        """
        added = 0
        approved: dict[str, list[FieldPattern]] = {}
        for field_name, values in patterns.items():
            field_patterns = [
                v.to_field_pattern() if isinstance(v, InferredPattern) else v
                for v in values
            ]
            approved[field_name] = field_patterns
            added += self.registry.add_patterns(format_id, field_name, field_patterns)

        if persist and self.format_settings is not None and added:
            self.format_settings.save(format_id, approved)
        return added

    def close(self) -> None:
        """Release the generative adapter's worker threads."""
        self.adapter.close()

    def __enter__(self) -> "OrderExtractionService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def create_default_service(
    storage_path: Path | None = None,
    storage: KeyValueStore | None = None,
    generator: GenerationService | None = None,
    audit_manager: AuditManager | None = None,
) -> OrderExtractionService:
    """Wire a service with built-in formats, persisted state and OpenAI if configured.

    Args:
        storage_path: SQLite file for learning history and custom formats
        storage: Pre-built store, overrides storage_path
        generator: Generation capability, defaults to OpenAI when a key is set
        audit_manager: Optional audit trail

    Returns:
        A ready OrderExtractionService

    """
    storage = storage or SQLiteKeyValueStore(storage_path or DEFAULT_STORAGE_PATH)

    registry = FormatRegistry.with_builtin_formats()
    settings = FormatSettings(storage)
    settings.apply(registry)

    learning_store = LearningStore(storage)
    adapter = GenerativeExtractionAdapter(
        learning_store,
        generator=generator if generator is not None else create_generation_service(),
    )

    return OrderExtractionService(
        registry,
        learning_store,
        adapter,
        audit_manager=audit_manager,
        format_settings=settings,
    )
