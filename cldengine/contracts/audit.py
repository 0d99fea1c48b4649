"""
Audit Contracts

Immutable audit records emitted by pipeline stages.
Entries carry a run-local sequence number instead of wall-clock time so
that audit logs are as reproducible as the graph itself.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class AuditEventType(Enum):
    """Explicit audit event types."""
    STAGE_STARTED = "stage_started"
    STAGE_COMPLETED = "stage_completed"
    ITEM_DROPPED = "item_dropped"
    EDGE_MERGED = "edge_merged"
    EDGE_PRUNED = "edge_pruned"
    EXPORT_WRITTEN = "export_written"
    EMPTY_RESULT = "empty_result"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    sequence: int
    event_type: AuditEventType
    layer: str  # Which stage generated this
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'sequence': self.sequence,
            'eventType': self.event_type.value,
            'layer': self.layer,
            'action': self.action,
            'entityId': self.entity_id,
            'metadata': dict(self.metadata),
        }
