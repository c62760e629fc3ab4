"""LangGraph workflow components for order extraction."""

from .state import ExtractionState
from .workflow import build_workflow, create_initial_state, run_workflow

__all__ = ["ExtractionState", "build_workflow", "create_initial_state", "run_workflow"]
