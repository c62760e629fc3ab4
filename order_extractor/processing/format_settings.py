"""Persisted custom pattern sets for registered formats."""

import json
import logging
from datetime import datetime
from typing import Any

from ..config import CUSTOM_FORMATS_KEY
from ..exceptions import StorageError
from ..models.format import FieldPattern
from ..services.kv_store import KeyValueStore
from .format_registry import FormatRegistry

logger = logging.getLogger(__name__)


class FormatSettings:
    """Loads and saves per-format custom patterns under a fixed key."""

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage

    def load(self) -> dict[str, Any]:
        """Load custom format settings, or {} when absent or unreadable."""
        try:
            raw = self._storage.get(CUSTOM_FORMATS_KEY)
            if not raw:
                return {}
            settings = json.loads(raw)
        except (StorageError, ValueError) as e:
            logger.warning(f"Custom format settings unreadable, ignoring: {e}")
            return {}

        if not isinstance(settings, dict):
            logger.warning("Custom format settings are not a mapping, ignoring")
            return {}

        valid = {}
        for format_id, entry in settings.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("patterns") or {}, dict):
                logger.warning(f"Ignoring malformed custom settings for {format_id}")
                continue
            valid[format_id] = entry
        return valid

    def save(self, format_id: str,
             patterns: dict[str, list[FieldPattern | str | dict[str, Any]]]) -> None:
        """Store patterns for a format, merging with previously saved fields.

        Args:
            format_id: The format the patterns belong to
            patterns: Mapping of field name to patterns

        """
        serialized = {
            field_name: [
                p.to_dict() if isinstance(p, FieldPattern) else p
                for p in values
            ]
            for field_name, values in patterns.items()
        }

        settings = self.load()
        existing = settings.get(format_id) or {}
        saved_patterns = dict(existing.get("patterns") or {})
        for field_name, values in serialized.items():
            previous = saved_patterns.get(field_name)
            saved_patterns[field_name] = (previous if isinstance(previous, list) else []) + values

        settings[format_id] = {
            **existing,
            "patterns": saved_patterns,
            "updatedAt": datetime.now().isoformat(),
        }

        try:
            self._storage.set(CUSTOM_FORMATS_KEY, json.dumps(settings, ensure_ascii=False))
            logger.info(f"Saved custom format settings for {format_id}")
        except StorageError as e:
            logger.error(f"Failed to save custom format settings for {format_id}: {e}")

    def apply(self, registry: FormatRegistry) -> int:
        """Merge saved patterns into a registry.

        Returns:
            Number of patterns appended

        """
        settings = self.load()
        if not settings:
            return 0
        added = registry.merge_custom_patterns(settings)
        logger.info(f"Applied {added} custom patterns from {len(settings)} formats")
        return added
