"""Audit trail data models for order extraction.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class AuditEntry:
    """Represents a single audit log entry."""

    timestamp: datetime = field(default_factory=datetime.now)
    document_id: str | None = None
    event_type: str = ""  # "classify", "extract", "escalate", "learn", "error"
    details: str = ""
    format_id: str | None = None
    extraction_method: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV export.

        Returns:
            Dictionary with all fields formatted for export

        """
        return {
            'timestamp': self.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            'document': self.document_id or '',
            'event': self.event_type,
            'details': self.details,
            'format': self.format_id or '',
            'method': self.extraction_method or ''
        }
