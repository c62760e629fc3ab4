"""Deterministic field extraction with a format's pattern library."""

import logging
from typing import Any

from ..models.format import FormatDefinition
from ..models.record import WIRE_NAMES, ExtractionMethod, ExtractionRecord
from ..utils.text_normalizer import normalize_date, parse_float, parse_int

logger = logging.getLogger(__name__)

DATE_FIELDS = ("order_date", "delivery_date")


class DeterministicExtractor:
    """Applies a format's field patterns to text, first match wins per field."""

    def extract_field(self, text: str, format_definition: FormatDefinition,
                      field_name: str) -> str | None:
        """Try one field's patterns in declaration order.

        Returns:
            The first non-empty captured value, or None if no pattern matched

        """
        for index, pattern in enumerate(format_definition.patterns_for(field_name)):
            value = pattern.extract(text)
            if value is not None:
                logger.debug(f"{format_definition.id} {field_name}: pattern {index} matched {value!r}")
                return value
        return None

    def extract(self, text: str, format_definition: FormatDefinition) -> ExtractionRecord:
        """Extract a record from text using the given format.

        Fields without a matching pattern keep their defaults.

        Args:
            text: Plain text of the order document
            format_definition: The format chosen by the classifier

        Returns:
            ExtractionRecord tagged DETERMINISTIC

        """
        values: dict[str, Any] = {}

        for field_name in WIRE_NAMES:
            raw = self.extract_field(text, format_definition, field_name)
            if raw is None:
                continue

            if field_name == "quantity":
                values[field_name] = parse_int(raw)
            elif field_name == "unit_weight":
                values[field_name] = parse_float(raw)
            elif field_name in DATE_FIELDS:
                values[field_name] = normalize_date(raw)
            else:
                values[field_name] = raw

        logger.info(f"{format_definition.id}: extracted {len(values)} fields deterministically")
        return ExtractionRecord(
            **values,
            detected_format=format_definition.id,
            confidence=0,
            extraction_method=ExtractionMethod.DETERMINISTIC,
        )
