"""Infer candidate extraction patterns from corrected records.

Given the document text and the values a human confirmed, locate each value
in the text, look at the label written just before it and turn that label
into a reusable "label, separator, value" pattern. Results are proposals:
ranking and de-duplication are left to whoever approves them.
"""

import logging
import re

from ..config import ANALYSIS_CONTEXT_CHARS, INFERENCE_CONTEXT_CHARS
from ..models.format import FieldPattern
from ..models.learning import ContextSnippet, InferredPattern
from ..models.record import STRING_FIELDS, ExtractionRecord

logger = logging.getLogger(__name__)

# Trailing label token: the last run without whitespace or colons
_TRAILING_LABEL = re.compile(r"([^\s:：]+)[:：\s]*$")

VALUE_CAPTURE = r"[:：\s]*([^\s]+)"


def find_value_context(text: str, value: str,
                       context_chars: int = INFERENCE_CONTEXT_CHARS) -> list[ContextSnippet]:
    """Find every occurrence of a literal value with surrounding context.

    Args:
        text: Document text
        value: Value to search for (matched literally, case-insensitive)
        context_chars: Maximum characters of same-line context on each side

    Returns:
        One ContextSnippet per occurrence, empty when the value is absent

    """
    if not value:
        return []

    context_regex = re.compile(
        rf"([^\n]{{0,{context_chars}}}){re.escape(value)}([^\n]{{0,{context_chars}}})",
        re.IGNORECASE,
    )
    return [
        ContextSnippet(
            before=match.group(1).strip(),
            after=match.group(2).strip(),
            full_match=match.group(0).strip(),
        )
        for match in context_regex.finditer(text)
    ]


def extract_label(before: str) -> str | None:
    """Get the label token that ends the text preceding a value."""
    match = _TRAILING_LABEL.search(before.strip())
    if not match:
        return None
    return match.group(1)


def label_pattern(label: str) -> str:
    """Build the generalized pattern for a label."""
    return re.escape(label) + VALUE_CAPTURE


def _string_values(record: ExtractionRecord) -> dict[str, str]:
    values = {}
    for name in STRING_FIELDS:
        value = getattr(record, name).strip()
        if value:
            values[name] = value
    return values


def infer_patterns(text: str, correct_data: ExtractionRecord,
                   context_chars: int = INFERENCE_CONTEXT_CHARS) -> dict[str, list[InferredPattern]]:
    """Propose label-based patterns for each filled string field.

    Fields whose value does not literally occur in the text produce nothing.

    Args:
        text: Document text
        correct_data: Record with human-confirmed values
        context_chars: Context window used to find labels

    Returns:
        Mapping of record attribute name to proposed patterns

    """
    inferred: dict[str, list[InferredPattern]] = {}

    for name, value in _string_values(correct_data).items():
        patterns = []
        for snippet in find_value_context(text, value, context_chars):
            label = extract_label(snippet.before) if snippet.before else None
            if label:
                patterns.append(InferredPattern(field=name, label=label, pattern=label_pattern(label)))

        if patterns:
            inferred[name] = patterns
            logger.debug(f"Inferred {name} labels: {[p.label for p in patterns]}")

    return inferred


def analyze_context(text: str, correct_data: ExtractionRecord,
                    context_chars: int = ANALYSIS_CONTEXT_CHARS) -> dict[str, list[ContextSnippet]]:
    """Collect the context snippets stored with a learning entry."""
    snippets: dict[str, list[ContextSnippet]] = {}
    for name, value in _string_values(correct_data).items():
        found = find_value_context(text, value, context_chars)
        if found:
            snippets[name] = found
    return snippets


def to_field_patterns(inferred: dict[str, list[InferredPattern]]) -> dict[str, list[FieldPattern]]:
    """Convert approved proposals into registry patterns."""
    return {
        name: [p.to_field_pattern() for p in patterns]
        for name, patterns in inferred.items()
    }
