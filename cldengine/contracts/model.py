"""
Causal Loop Diagram Contracts
=============================

Immutable data model shared by every pipeline stage.

CONSTRAINTS:
- All types are frozen dataclasses
- Evidence is a tuple of Spans, order preserved (append-only semantics)
- Ids are content-derived so repeated runs yield identical ids
- to_dict() emits the camelCase output contract consumed by exporters
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .base import CodeType, Group, LoopType, Polarity, Relation


PREVIEW_LENGTH = 160


# =============================================================================
# SOURCE MATERIAL
# =============================================================================

@dataclass(frozen=True)
class Document:
    """
    One input item with newline-unified text.

    Created once per input item; immutable thereafter.
    """
    id: str
    text: str
    title: Optional[str] = None
    source_uri: Optional[str] = None
    metadata: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'sourceUri': self.source_uri,
            'text': self.text,
            'metadata': dict(self.metadata),
        }


@dataclass(frozen=True)
class Span:
    """
    Sentence-level evidence span.

    Offsets index the owning document's NORMALIZED text.
    `text` is the trimmed sentence; `text_preview` its bounded excerpt.
    """
    doc_id: str
    start: int
    end: int
    text: str

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Span start must be >= 0, got {self.start}")
        if self.end <= self.start:
            raise ValueError(
                f"Span end must be > start, got [{self.start}, {self.end})"
            )

    @property
    def text_preview(self) -> str:
        return self.text[:PREVIEW_LENGTH]

    def to_dict(self) -> dict:
        return {
            'docId': self.doc_id,
            'start': self.start,
            'end': self.end,
            'textPreview': self.text_preview,
        }


# =============================================================================
# CODES
# =============================================================================

@dataclass(frozen=True)
class Code:
    """
    Qualitative code: a theme (open coding) or a variable (axial coding).

    Id scheme: `theme:<label>` or `var:<label>`.
    """
    id: str
    label: str
    type: CodeType
    group: Group
    evidence: Tuple[Span, ...] = field(default_factory=tuple)
    notes: Optional[str] = None

    @staticmethod
    def theme_id(label: str) -> str:
        return f"theme:{label}"

    @staticmethod
    def variable_id(label: str) -> str:
        return f"var:{label}"

    def to_dict(self) -> dict:
        d = {
            'id': self.id,
            'label': self.label,
            'type': self.type.value,
            'group': self.group.value,
            'evidence': [sp.to_dict() for sp in self.evidence],
        }
        if self.notes is not None:
            d['notes'] = self.notes
        return d


@dataclass(frozen=True)
class Containment:
    """Theme -> variable membership. Never implies causality."""
    parent_code_id: str
    child_code_id: str
    relation: Relation = Relation.CONTAINS

    def to_dict(self) -> dict:
        return {
            'parentCodeId': self.parent_code_id,
            'childCodeId': self.child_code_id,
            'relation': self.relation.value,
        }


# =============================================================================
# CAUSAL STRUCTURE
# =============================================================================

@dataclass(frozen=True)
class CausalEdge:
    """
    Directed, polarity-signed, confidence-scored edge.

    Self-loops are tolerated. Confidence is clamped to [0, 1].
    """
    from_variable_id: str
    to_variable_id: str
    polarity: Polarity
    confidence: float
    evidence: Tuple[Span, ...] = field(default_factory=tuple)
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'confidence', clamp_unit(self.confidence))

    @staticmethod
    def make_id(from_id: str, to_id: str, polarity: Polarity) -> str:
        return f"e:{from_id}->{to_id}:{polarity.value}"

    @property
    def id(self) -> str:
        return CausalEdge.make_id(self.from_variable_id, self.to_variable_id, self.polarity)

    @property
    def merge_key(self) -> Tuple[str, str, Polarity]:
        return (self.from_variable_id, self.to_variable_id, self.polarity)

    def to_dict(self) -> dict:
        d = {
            'id': self.id,
            'fromVariableId': self.from_variable_id,
            'toVariableId': self.to_variable_id,
            'polarity': self.polarity.value,
            'confidence': self.confidence,
            'evidence': [sp.to_dict() for sp in self.evidence],
        }
        if self.notes is not None:
            d['notes'] = self.notes
        return d


@dataclass(frozen=True)
class Graph:
    """Consolidated view: variables plus surviving edges."""
    variables: Tuple[Code, ...]
    edges: Tuple[CausalEdge, ...]

    def variable_ids(self) -> Tuple[str, ...]:
        return tuple(v.id for v in self.variables)

    def label_for(self, variable_id: str) -> str:
        for v in self.variables:
            if v.id == variable_id:
                return v.label
        return variable_id

    def to_dict(self) -> dict:
        return {
            'variables': [v.to_dict() for v in self.variables],
            'edges': [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class Loop:
    """
    Simple feedback cycle.

    Derived fresh each run from the graph that produced it.
    """
    id: str
    node_ids: Tuple[str, ...]
    edge_ids: Tuple[str, ...]
    type: LoopType

    @property
    def evidence(self) -> Tuple[str, ...]:
        return self.edge_ids

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'nodeIds': list(self.node_ids),
            'edgeIds': list(self.edge_ids),
            'type': self.type.value,
            'evidence': list(self.evidence),
        }


# =============================================================================
# RUN OUTPUT
# =============================================================================

@dataclass(frozen=True)
class ExportBundle:
    """Paths written by an export collaborator."""
    graph_json_path: str
    csv_nodes_path: Optional[str] = None
    csv_edges_path: Optional[str] = None
    provenance_html_path: Optional[str] = None
    cld_mermaid_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'graphJsonPath': self.graph_json_path,
            'csvNodesPath': self.csv_nodes_path,
            'csvEdgesPath': self.csv_edges_path,
            'provenanceHtmlPath': self.provenance_html_path,
            'cldMermaidPath': self.cld_mermaid_path,
        }


@dataclass(frozen=True)
class PipelineArtifacts:
    """Full artifact bundle of one pipeline run."""
    documents: Tuple[Document, ...]
    sentences: Tuple[Span, ...]
    themes: Tuple[Code, ...]
    variables: Tuple[Code, ...]
    containment: Tuple[Containment, ...]
    edges: Tuple[CausalEdge, ...]
    graph: Graph
    loops: Tuple[Loop, ...]
    metrics: Optional[Mapping[str, Any]] = None
    exports: Optional[ExportBundle] = None
    audit_log: Tuple[Any, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """True when no usable diagram was produced."""
        return not self.variables or not self.edges

    def to_dict(self, include_audit: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            'documents': [doc.to_dict() for doc in self.documents],
            'sentences': [sp.to_dict() for sp in self.sentences],
            'themes': [t.to_dict() for t in self.themes],
            'variables': [v.to_dict() for v in self.variables],
            'containment': [c.to_dict() for c in self.containment],
            'edges': [e.to_dict() for e in self.edges],
            'graph': self.graph.to_dict(),
            'loops': [lp.to_dict() for lp in self.loops],
            'metrics': dict(self.metrics) if self.metrics is not None else None,
            'exports': self.exports.to_dict() if self.exports else None,
        }
        if include_audit:
            d['auditLog'] = [entry.to_dict() for entry in self.audit_log]
        return d


def clamp_unit(value: float) -> float:
    """Clamp a score to [0, 1]."""
    return max(0.0, min(1.0, float(value)))
