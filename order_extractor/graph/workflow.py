import logging
from collections.abc import Iterable
from typing import Any, cast

from langgraph.graph import StateGraph
from langgraph.graph.state import CompiledStateGraph

from ..config import ESCALATION_LEVELS
from ..processing.audit_manager import AuditManager
from ..processing.field_extractor import DeterministicExtractor
from ..processing.format_classifier import FormatClassifier
from ..processing.generative_adapter import GenerativeExtractionAdapter
from ..utils.error_handling import check_state_for_errors
from .nodes.field_extractor import make_extract_fields
from .nodes.format_classifier import make_classify_format
from .nodes.generative_extractor import make_generative_extract
from .nodes.quality_gate import evaluate_record_quality
from .state import ExtractionState

logger = logging.getLogger(__name__)


def build_workflow(
    classifier: FormatClassifier,
    extractor: DeterministicExtractor,
    adapter: GenerativeExtractionAdapter,
    audit_manager: AuditManager | None = None,
    escalation_levels: Iterable[str] = ESCALATION_LEVELS,
) -> CompiledStateGraph:
    """Build and compile the extraction workflow.

    Args:
        classifier: Format classifier over the shared registry
        extractor: Deterministic extractor
        adapter: Generative adapter for the second pass
        audit_manager: Optional audit trail
        escalation_levels: Quality levels that trigger the generative pass

    Returns:
        Compiled LangGraph workflow

    """
    escalate_on = frozenset(escalation_levels)

    workflow = StateGraph(ExtractionState)

    # Add nodes
    workflow.add_node("classify_format", make_classify_format(classifier, audit_manager))
    workflow.add_node("extract_fields", make_extract_fields(classifier.registry, extractor))
    workflow.add_node("evaluate_quality", evaluate_record_quality)
    workflow.add_node("generative_extract", make_generative_extract(adapter, audit_manager))

    workflow.add_edge("classify_format", "extract_fields")
    workflow.add_edge("extract_fields", "evaluate_quality")

    def route_after_quality(state: ExtractionState) -> str:
        """Route to the generative pass when quality is insufficient."""
        if check_state_for_errors(state):
            return "end"

        quality = state.get("quality")
        if quality is not None and quality.level.value in escalate_on:
            logger.debug(f"Escalating {state.get('document_id')}: quality {quality.level.value}")
            return "generative"
        return "end"

    workflow.add_conditional_edges(
        "evaluate_quality",
        route_after_quality,
        {
            "generative": "generative_extract",
            "end": "__end__"
        }
    )

    workflow.set_entry_point("classify_format")
    workflow.set_finish_point("generative_extract")

    return workflow.compile()


def create_initial_state(
    content: str,
    document_id: str | None = None,
    context: dict[str, Any] | None = None,
) -> ExtractionState:
    """Create initial state for document extraction.

    Args:
        content: Plain text of the order document
        document_id: Optional identifier used in logs and audit
        context: Optional hints (for example ``partner_hint``)

    Returns:
        Initial extraction state

    """
    return {
        "document_id": document_id,
        "content": content,
        "context": dict(context or {}),
        "format_id": None,
        "format_confidence": None,
        "matched_indicators": None,
        "deterministic_record": None,
        "record": None,
        "quality": None,
        "escalated": False,
        "generation_status": None,
        "error": None,
    }


def run_workflow(
    app: CompiledStateGraph,
    content: str,
    document_id: str | None = None,
    context: dict[str, Any] | None = None,
) -> ExtractionState:
    """Process a single document through a compiled workflow."""
    result = app.invoke(create_initial_state(content, document_id, context))
    return cast(ExtractionState, result)
