"""Audit manager for logging and tracking extraction activities.
"""
import csv
import threading
from pathlib import Path

from ..models.audit import AuditEntry


class AuditManager:
    """Manages audit trail logging and export."""

    def __init__(self):
        """Initialize empty audit log."""
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def _append(self, entry: AuditEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def log_classification(self, document_id: str | None, format_id: str,
                           confidence: float, matched_indicators: list[str]) -> None:
        """Log a format classification event.

        Args:
            document_id: The document identifier (optional)
            format_id: The selected format id
            confidence: The classifier score
            matched_indicators: Indicator patterns that matched

        """
        if matched_indicators:
            details = (f"Format selected - Score: {confidence:.2f} "
                       f"({len(matched_indicators)} indicators: {', '.join(matched_indicators)})")
        else:
            details = "No indicators matched - generic format"

        self._append(AuditEntry(
            document_id=document_id,
            event_type="classify",
            format_id=format_id,
            details=details
        ))

    def log_extraction(self, document_id: str | None, format_id: str,
                       method: str, quality: int, level: str) -> None:
        """Log a completed extraction.

        Args:
            document_id: The document identifier (optional)
            format_id: The format used
            method: The extraction method of the final record
            quality: Quality score of the final record
            level: Quality tier of the final record

        """
        self._append(AuditEntry(
            document_id=document_id,
            event_type="extract",
            format_id=format_id,
            extraction_method=method,
            details=f"Extraction complete - Quality: {quality} ({level})"
        ))

    def log_escalation(self, document_id: str | None, format_id: str,
                       level: str) -> None:
        """Log hand-off from deterministic to generative extraction."""
        self._append(AuditEntry(
            document_id=document_id,
            event_type="escalate",
            format_id=format_id,
            details=f"Deterministic quality '{level}' - generative pass requested"
        ))

    def log_learning(self, document_id: str | None, feedback_type: str,
                     entry_id: int, pattern_fields: list[str]) -> None:
        """Log a stored learning entry.

        Args:
            document_id: The document identifier (optional)
            feedback_type: correction or confirmation
            entry_id: The learning entry id
            pattern_fields: Fields for which context patterns were found

        """
        details = f"Learning {feedback_type} stored - Entry {entry_id}"
        if pattern_fields:
            details += f" (context for: {', '.join(pattern_fields)})"

        self._append(AuditEntry(
            document_id=document_id,
            event_type="learn",
            details=details
        ))

    def log_error(self, document_id: str | None, error_message: str) -> None:
        """Log an error event.

        Args:
            document_id: The document identifier (optional)
            error_message: The error message

        """
        self._append(AuditEntry(
            document_id=document_id,
            event_type="error",
            details=f"Error: {error_message}"
        ))

    def get_entries(self, event_type: str | None = None,
                    document_filter: list[str] | None = None) -> list[AuditEntry]:
        """Get audit entries with optional filtering.

        Args:
            event_type: Filter by event type (optional)
            document_filter: Filter by document ids (optional)

        Returns:
            List of matching audit entries

        """
        with self._lock:
            entries = list(self._entries)

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if document_filter:
            entries = [e for e in entries
                       if e.document_id in document_filter]

        return entries

    def export_csv(self, filepath: Path) -> None:
        """Export all audit entries to CSV file.

        Args:
            filepath: Path to save the CSV file

        """
        entries = sorted(self.get_entries(), key=lambda e: e.timestamp)

        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            fieldnames = ['timestamp', 'document', 'event', 'details',
                          'format', 'method']
            writer = csv.DictWriter(f, fieldnames=fieldnames)

            writer.writeheader()

            for entry in entries:
                writer.writerow(entry.to_dict())

    def get_entry_count(self) -> int:
        """Get total number of audit entries.

        Returns:
            Number of audit entries

        """
        with self._lock:
            return len(self._entries)
