"""
Observability & Audit Layer

RESPONSIBILITY: Recording what every stage kept, dropped, merged and pruned
ALLOWED INPUTS: Audit calls from any stage
OUTPUTS: AuditLogEntry tuples, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify pipeline behavior
- Filter or interpret events (only record them)
- Read wall-clock time (audit output must stay deterministic)

Collectors are append-only. Every stage receives an optional collector;
passing None disables recording for that stage.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..contracts.audit import AuditEventType, AuditLogEntry


# =============================================================================
# LOG COLLECTORS (One per stage)
# =============================================================================

class LogCollector:
    """
    Per-stage log collector.

    Sequence numbers come from the owning AuditTrail so entries from
    different stages interleave in a single, stable order.
    """

    def __init__(self, layer_name: str, trail: Optional['AuditTrail'] = None):
        self._layer_name = layer_name
        self._trail = trail
        self._entries: List[AuditLogEntry] = []

    def log(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        metadata: Optional[Mapping[str, object]] = None
    ) -> AuditLogEntry:
        """Create and collect an entry."""
        sequence = self._trail.next_sequence() if self._trail else len(self._entries) + 1
        entry = AuditLogEntry(
            sequence=sequence,
            event_type=event_type,
            layer=self._layer_name,
            action=action,
            entity_id=entity_id,
            metadata=_freeze_metadata(metadata),
        )
        self.collect(entry)
        return entry

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered by type."""
        if event_type is None:
            return list(self._entries)
        return [e for e in self._entries if e.event_type == event_type]

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


class AuditTrail:
    """
    Registry of per-stage collectors for one pipeline run.

    One trail per run; trails are never shared across runs.
    """

    def __init__(self):
        self._collectors: Dict[str, LogCollector] = {}
        self._sequence = 0

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def collector(self, layer_name: str) -> LogCollector:
        """Get or create the collector for a stage."""
        if layer_name not in self._collectors:
            self._collectors[layer_name] = LogCollector(layer_name, trail=self)
        return self._collectors[layer_name]

    def get_unified_log(
        self,
        layers: Optional[Iterable[str]] = None
    ) -> List[AuditLogEntry]:
        """Get entries from all or the given stages, in sequence order."""
        target_layers = list(layers) if layers is not None else list(self._collectors)
        entries: List[AuditLogEntry] = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                entries.extend(collector.get_entries())
        entries.sort(key=lambda e: e.sequence)
        return entries

    def get_layer_log(self, layer_name: str) -> List[AuditLogEntry]:
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries()

    def entries(self) -> Tuple[AuditLogEntry, ...]:
        return tuple(self.get_unified_log())

    def generate_audit_report(self) -> Dict:
        """Aggregate entry counts by stage and event type."""
        entries = self.get_unified_log()
        by_layer: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1
        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_event_type': by_type,
        }


def _freeze_metadata(metadata: Optional[Mapping[str, object]]) -> Tuple[Tuple[str, str], ...]:
    if not metadata:
        return ()
    return tuple((str(k), str(v)) for k, v in metadata.items())


__all__ = [
    'AuditEventType',
    'AuditLogEntry',
    'LogCollector',
    'AuditTrail',
]
