from collections.abc import Callable

from ...processing.field_extractor import DeterministicExtractor
from ...processing.format_registry import FormatRegistry
from ...utils.error_handling import check_state_for_errors, create_error_response
from ..state import ExtractionState


def make_extract_fields(
    registry: FormatRegistry,
    extractor: DeterministicExtractor,
) -> Callable[[ExtractionState], dict]:
    """Create the node that applies the selected format's patterns.

    Args:
        registry: Registry to resolve the selected format id
        extractor: Deterministic extractor

    Returns:
        Node function producing ``deterministic_record`` and ``record``

    """

    def extract_fields(state: ExtractionState) -> dict:
        if check_state_for_errors(state):
            return {}

        try:
            format_definition = registry.get(state.get("format_id") or registry.generic.id)
            record = extractor.extract(state["content"], format_definition)
        except Exception as e:
            return create_error_response(e, format_id=state.get("format_id"))

        return {"deterministic_record": record, "record": record}

    return extract_fields
