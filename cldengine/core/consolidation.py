"""
Graph Consolidation
===================

Merges duplicate edges and prunes weak ones.

MERGE RULE:
- Key: (from, to, polarity)
- Evidence: concatenated, not deduplicated (repetition signals strength)
- Confidence: min(1, (existing + incoming) / 2 + MERGE_UPLIFT)

Edges below prune_threshold are dropped after merging. Consolidating an
already-consolidated edge set changes nothing.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import CausalConfig, DEFAULT_CONFIG
from ..contracts.audit import AuditEventType
from ..contracts.base import Polarity
from ..contracts.model import CausalEdge, Code, Graph
from ..observability import LogCollector


MERGE_UPLIFT = 0.05


def merge_confidence(existing: float, incoming: float) -> float:
    """Bounded average with uplift for repeated observations."""
    return min(1.0, (existing + incoming) / 2 + MERGE_UPLIFT)


def consolidate_edges(
    raw: Sequence[CausalEdge],
    cfg: CausalConfig = DEFAULT_CONFIG,
    collector: Optional[LogCollector] = None
) -> Tuple[CausalEdge, ...]:
    """Merge by (from, to, polarity), then prune below the threshold."""
    merged: Dict[Tuple[str, str, Polarity], CausalEdge] = {}

    for edge in raw:
        key = edge.merge_key
        existing = merged.get(key)
        if existing is None:
            merged[key] = edge
            continue
        merged[key] = CausalEdge(
            from_variable_id=existing.from_variable_id,
            to_variable_id=existing.to_variable_id,
            polarity=existing.polarity,
            confidence=merge_confidence(existing.confidence, edge.confidence),
            evidence=existing.evidence + edge.evidence,
            notes=existing.notes,
        )
        if collector:
            collector.log(
                AuditEventType.EDGE_MERGED,
                action="duplicate_edge_merged",
                entity_id=existing.id,
                metadata={'evidence_count': len(merged[key].evidence)},
            )

    kept: List[CausalEdge] = []
    for edge in merged.values():
        if edge.confidence < cfg.prune_threshold:
            if collector:
                collector.log(
                    AuditEventType.EDGE_PRUNED,
                    action="below_prune_threshold",
                    entity_id=edge.id,
                    metadata={
                        'confidence': f"{edge.confidence:.3f}",
                        'threshold': cfg.prune_threshold,
                    },
                )
            continue
        kept.append(edge)

    if collector:
        collector.log(
            AuditEventType.STAGE_COMPLETED,
            action="edges_consolidated",
            metadata={'raw_edge_count': len(raw), 'edge_count': len(kept)},
        )
    return tuple(kept)


def build_graph(variables: Sequence[Code], edges: Sequence[CausalEdge]) -> Graph:
    return Graph(variables=tuple(variables), edges=tuple(edges))
