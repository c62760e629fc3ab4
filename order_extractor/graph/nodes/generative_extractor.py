import logging
from collections.abc import Callable

from ...processing.audit_manager import AuditManager
from ...processing.generative_adapter import GenerativeExtractionAdapter
from ...processing.quality_evaluator import evaluate_quality
from ..state import ExtractionState

logger = logging.getLogger(__name__)


def make_generative_extract(
    adapter: GenerativeExtractionAdapter,
    audit_manager: AuditManager | None = None,
) -> Callable[[ExtractionState], dict]:
    """Create the second-pass node used when deterministic quality is too low.

    The generative record replaces the deterministic one unless it fills
    fewer essential fields.
    """

    def generative_extract(state: ExtractionState) -> dict:
        deterministic = state.get("record")
        deterministic_quality = state.get("quality")
        format_id = state.get("format_id")

        if audit_manager and deterministic_quality:
            audit_manager.log_escalation(
                document_id=state.get("document_id"),
                format_id=format_id or "",
                level=deterministic_quality.level.value,
            )

        context = dict(state.get("context") or {})
        context["detected_format"] = format_id
        if deterministic_quality:
            context["missing_fields"] = ", ".join(deterministic_quality.missing_fields)

        outcome = adapter.generate(state["content"], context)
        quality = evaluate_quality(outcome.record)

        if deterministic is not None and deterministic_quality is not None \
                and quality.quality < deterministic_quality.quality:
            logger.info(
                f"Keeping deterministic record for {state.get('document_id')}: "
                f"{outcome.record.extraction_method.value} quality {quality.quality} "
                f"< {deterministic_quality.quality}"
            )
            return {"escalated": True, "generation_status": outcome.status.value}

        return {
            "record": outcome.record,
            "quality": quality,
            "escalated": True,
            "generation_status": outcome.status.value,
        }

    return generative_extract
