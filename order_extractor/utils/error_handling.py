"""Standardized error handling utilities for the extraction workflow."""

from typing import Any

from ..models.record import GENERIC_FORMAT_ID, ExtractionMethod, ExtractionRecord


def create_error_response(
    error: Exception | str,
    format_id: str | None = GENERIC_FORMAT_ID,
) -> dict[str, Any]:
    """Create a standardized error response for LangGraph nodes.

    Args:
        error: The error that occurred
        format_id: Format to stamp on the fallback record

    Returns:
        Dictionary with error information and an all-default record

    """
    error_message = str(error) if isinstance(error, Exception) else error

    return {
        "error": error_message,
        "record": ExtractionRecord(
            detected_format=format_id or GENERIC_FORMAT_ID,
            notes=f"Error during extraction: {error_message}",
            extraction_method=ExtractionMethod.DETERMINISTIC,
        ),
    }


def check_state_for_errors(state: dict[str, Any]) -> bool:
    """Check if a state contains errors.

    Args:
        state: The extraction state to check

    Returns:
        True if state contains errors, False otherwise

    """
    return bool(state.get("error"))
