import logging
from collections.abc import Callable

from ...processing.audit_manager import AuditManager
from ...processing.format_classifier import FormatClassifier
from ...utils.error_handling import check_state_for_errors, create_error_response
from ..state import ExtractionState

logger = logging.getLogger(__name__)


def make_classify_format(
    classifier: FormatClassifier,
    audit_manager: AuditManager | None = None,
) -> Callable[[ExtractionState], dict]:
    """Create the node that selects a partner format for the document."""

    def classify_format(state: ExtractionState) -> dict:
        if check_state_for_errors(state):
            return {}

        try:
            # A known partner hint skips indicator scoring
            hint = (state.get("context") or {}).get("partner_hint")
            if hint:
                hinted = classifier.registry.find(str(hint))
                if hinted is not None:
                    logger.info(f"Using partner hint {hinted.id} for {state.get('document_id')}")
                    return {
                        "format_id": hinted.id,
                        "format_confidence": None,
                        "matched_indicators": [],
                    }
                logger.warning(f"Partner hint {hint!r} is not a registered format, classifying")

            result = classifier.classify(state["content"])

            if audit_manager:
                audit_manager.log_classification(
                    document_id=state.get("document_id"),
                    format_id=result.format.id,
                    confidence=result.confidence,
                    matched_indicators=result.matched_indicators,
                )

            return {
                "format_id": result.format.id,
                "format_confidence": result.confidence,
                "matched_indicators": result.matched_indicators,
            }

        except Exception as e:
            if audit_manager:
                audit_manager.log_error(state.get("document_id"), str(e))
            return create_error_response(e)

    return classify_format
