from ...processing.quality_evaluator import evaluate_quality
from ..state import ExtractionState


def evaluate_record_quality(state: ExtractionState) -> dict:
    """Score the current record."""
    record = state.get("record")
    if record is None:
        return {}
    return {"quality": evaluate_quality(record)}
