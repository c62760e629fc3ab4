"""Registry of partner format definitions."""

import logging
import threading
from typing import Any

from ..exceptions import FormatNotFoundError, PatternError, ValidationError
from ..models.format import GENERIC_FORMAT, FieldPattern, FormatDefinition
from ..models.record import GENERIC_FORMAT_ID, canonical_field
from .builtin_formats import BUILTIN_FORMATS

logger = logging.getLogger(__name__)


class FormatRegistry:
    """Extensible set of format definitions, kept in registration order.

    Readers get the current snapshot without locking; writers build a new
    mapping under a lock and swap it in, so a classification never sees a
    half-applied merge. The generic fallback format is always present.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._formats: dict[str, FormatDefinition] = {GENERIC_FORMAT_ID: GENERIC_FORMAT}

    @classmethod
    def with_builtin_formats(cls) -> "FormatRegistry":
        """Create a registry holding the generic format plus built-in partners."""
        registry = cls()
        for data in BUILTIN_FORMATS:
            registry.register(FormatDefinition.from_dict(data))
        return registry

    def register(self, format_definition: FormatDefinition) -> None:
        """Add or replace a format by id.

        A replaced format keeps its original registration position.

        Raises:
            ValidationError: If a different definition is registered as generic

        """
        if format_definition.is_generic and format_definition != GENERIC_FORMAT:
            raise ValidationError("The generic format cannot be replaced")

        with self._lock:
            formats = dict(self._formats)
            replaced = format_definition.id in formats
            formats[format_definition.id] = format_definition
            self._formats = formats

        logger.info(
            f"{'Replaced' if replaced else 'Registered'} format "
            f"{format_definition.id} ({format_definition.name}, priority {format_definition.priority})"
        )

    def get(self, format_id: str) -> FormatDefinition:
        """Get a format by id.

        Raises:
            FormatNotFoundError: If the id is not registered

        """
        try:
            return self._formats[format_id]
        except KeyError:
            raise FormatNotFoundError(f"Format not registered: {format_id}") from None

    def find(self, format_id: str) -> FormatDefinition | None:
        """Get a format by id (case-insensitive), or None."""
        formats = self._formats
        return formats.get(format_id) or formats.get(format_id.lower())

    def all(self) -> list[FormatDefinition]:
        """Get every format in registration order."""
        return list(self._formats.values())

    def __contains__(self, format_id: str) -> bool:
        return format_id in self._formats

    def __len__(self) -> int:
        return len(self._formats)

    @property
    def generic(self) -> FormatDefinition:
        return self._formats[GENERIC_FORMAT_ID]

    def add_patterns(self, format_id: str, field_name: str,
                     patterns: list[FieldPattern]) -> int:
        """Append patterns to one field of a format.

        Existing patterns keep first-match priority; patterns already present
        are skipped.

        Returns:
            Number of patterns actually appended

        Raises:
            FormatNotFoundError: If the format is not registered
            ValidationError: If the field is not a record field

        """
        name = canonical_field(field_name)
        if name is None:
            raise ValidationError(f"Unknown record field: {field_name}")

        with self._lock:
            current = self.get(format_id)
            seen = {p.key() for p in current.patterns_for(name)}
            new_patterns = []
            for pattern in patterns:
                if pattern.key() in seen:
                    continue
                seen.add(pattern.key())
                new_patterns.append(pattern)

            if not new_patterns:
                return 0

            formats = dict(self._formats)
            formats[format_id] = current.with_patterns(name, new_patterns)
            self._formats = formats

        logger.info(f"Added {len(new_patterns)} {name} patterns to format {format_id}")
        return len(new_patterns)

    def merge_custom_patterns(self, custom_formats: dict[str, Any]) -> int:
        """Merge persisted custom pattern sets into registered formats.

        Args:
            custom_formats: Mapping of format id to ``{"patterns": {field: [...]}}``

        Returns:
            Total number of patterns appended

        """
        added = 0
        for format_id, settings in custom_formats.items():
            target = self.find(format_id)
            if target is None:
                logger.warning(f"Ignoring custom patterns for unknown format {format_id}")
                continue

            patterns = settings.get("patterns") if isinstance(settings, dict) else None
            if not isinstance(patterns or {}, dict):
                logger.warning(f"Ignoring malformed custom patterns for {format_id}")
                continue

            for field_name, values in (patterns or {}).items():
                if not isinstance(values, list):
                    logger.warning(f"Skipping non-list custom {field_name} patterns for {format_id}")
                    continue
                try:
                    field_patterns = [FieldPattern.from_value(field_name, v) for v in values]
                    added += self.add_patterns(target.id, field_name, field_patterns)
                except (ValidationError, PatternError, KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping custom {field_name} patterns for {format_id}: {e}")

        return added
