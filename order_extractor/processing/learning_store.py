"""Stores human corrections for improving future extractions."""

import json
import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Any

from ..config import (
    LEARNING_DEFAULT_CONFIDENCE,
    LEARNING_HISTORY_KEY,
    LEARNING_MAX_ENTRIES,
    LEARNING_RECENT_DAYS,
    LEARNING_RETAIN_ENTRIES,
    PROMPT_EXAMPLE_COUNT,
    PROMPT_EXAMPLE_SNIPPET_CHARS,
)
from ..exceptions import StorageError
from ..models.learning import FeedbackType, LearningEntry, LearningStats
from ..models.record import ExtractionRecord
from ..services.kv_store import InMemoryKeyValueStore, KeyValueStore
from .pattern_inference import analyze_context

logger = logging.getLogger(__name__)


class LearningStore:
    """Append-only, size-capped history of corrected extractions.

    When the history grows past ``max_entries`` it is cut back to the most
    recent ``retain_entries``. Appends are serialized so the cap holds under
    concurrent corrections.
    """

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        max_entries: int = LEARNING_MAX_ENTRIES,
        retain_entries: int = LEARNING_RETAIN_ENTRIES,
    ) -> None:
        self._storage = storage or InMemoryKeyValueStore()
        self.max_entries = max_entries
        self.retain_entries = retain_entries
        self._lock = threading.Lock()
        self._last_id = 0
        self._history: list[LearningEntry] = self._load()

    def add_entry(
        self,
        input_text: str,
        correct_data: ExtractionRecord,
        feedback_type: FeedbackType | str = FeedbackType.CORRECTION,
        confidence: int | None = None,
    ) -> LearningEntry:
        """Record a corrected (or confirmed) extraction.

        Args:
            input_text: The document text the record was extracted from
            correct_data: The human-approved record
            feedback_type: correction or confirmation
            confidence: Confidence of the record the human reviewed, if known

        Returns:
            The stored LearningEntry

        """
        feedback_type = FeedbackType(feedback_type)
        patterns = analyze_context(input_text, correct_data)

        with self._lock:
            entry = LearningEntry(
                id=self._next_id(),
                input_text=input_text,
                correct_data=correct_data,
                feedback_type=feedback_type,
                confidence=confidence,
                extraction_patterns=patterns,
            )
            self._history.append(entry)

            if len(self._history) > self.max_entries:
                dropped = len(self._history) - self.retain_entries
                self._history = self._history[-self.retain_entries:]
                logger.info(f"Learning history trimmed, dropped {dropped} oldest entries")

            self._save()

        logger.info(f"Recorded learning {feedback_type.value} {entry.id} "
                    f"(context for {len(patterns)} fields)")
        return entry

    def recent_examples(self, n: int = PROMPT_EXAMPLE_COUNT) -> list[LearningEntry]:
        """Get the last n entries, oldest first."""
        if n <= 0:
            return []
        with self._lock:
            return list(self._history[-n:])

    def format_examples(self, n: int = PROMPT_EXAMPLE_COUNT) -> list[dict[str, Any]]:
        """Get recent entries formatted for inclusion in prompts.

        Args:
            n: Number of most recent entries to include

        Returns:
            List of examples with an input excerpt and the corrected fields

        """
        examples = []
        for entry in self.recent_examples(n):
            snippet = entry.input_text[:PROMPT_EXAMPLE_SNIPPET_CHARS]
            examples.append({
                "input_snippet": snippet,
                "truncated": len(entry.input_text) > PROMPT_EXAMPLE_SNIPPET_CHARS,
                "correct_data": entry.correct_data.to_field_dict(),
            })

        if examples:
            logger.debug(f"Formatted {len(examples)} learning examples for prompt")
        return examples

    def stats(self) -> LearningStats:
        """Get learning statistics.

        Entries without a recorded confidence are averaged as 50. This keeps
        compatibility with the historical numbers but treats "unknown" as
        "medium", so the average is an approximation.
        """
        with self._lock:
            history = list(self._history)

        total = len(history)
        week_ago = datetime.now() - timedelta(days=LEARNING_RECENT_DAYS)
        recent = sum(1 for e in history if e.timestamp > week_ago)

        average = 0.0
        if total:
            average = sum(
                e.confidence if e.confidence is not None else LEARNING_DEFAULT_CONFIDENCE
                for e in history
            ) / total

        return LearningStats(total_entries=total, recent_entries=recent, average_confidence=average)

    @property
    def history(self) -> list[LearningEntry]:
        with self._lock:
            return list(self._history)

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def reset(self) -> None:
        """Clear the whole history (explicit reset only)."""
        with self._lock:
            count = len(self._history)
            self._history = []
            self._save()
        logger.info(f"Cleared {count} learning entries")

    def reload(self) -> None:
        """Re-read the history from storage."""
        with self._lock:
            self._history = self._load()

    def _next_id(self) -> int:
        entry_id = max(int(time.time() * 1000), self._last_id + 1)
        self._last_id = entry_id
        return entry_id

    def _load(self) -> list[LearningEntry]:
        try:
            raw = self._storage.get(LEARNING_HISTORY_KEY)
            if not raw:
                return []
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a list of entries, got {type(payload).__name__}")
            history = [LearningEntry.from_dict(item) for item in payload]
        except (StorageError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Learning history unreadable, starting empty: {e}")
            return []

        if history:
            self._last_id = max(self._last_id, max(e.id for e in history))
        logger.info(f"Loaded {len(history)} learning entries")
        return history

    def _save(self) -> None:
        try:
            payload = json.dumps([e.to_dict() for e in self._history], ensure_ascii=False)
            self._storage.set(LEARNING_HISTORY_KEY, payload)
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Failed to save learning history: {e}")
