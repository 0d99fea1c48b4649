"""
Contracts Package

Immutable types shared by all layers. Layers import from here and
never from each other's implementations.
"""

from .base import (
    Polarity,
    CodeType,
    Group,
    LoopType,
    Relation,
    CldEngineError,
    ConfigurationError,
    InputValidationError,
    NoCausalRelationshipsError,
    ExportError,
)
from .audit import AuditEventType, AuditLogEntry
from .model import (
    PREVIEW_LENGTH,
    Document,
    Span,
    Code,
    Containment,
    CausalEdge,
    Graph,
    Loop,
    ExportBundle,
    PipelineArtifacts,
    clamp_unit,
)

__all__ = [
    'Polarity',
    'CodeType',
    'Group',
    'LoopType',
    'Relation',
    'CldEngineError',
    'ConfigurationError',
    'InputValidationError',
    'NoCausalRelationshipsError',
    'ExportError',
    'PREVIEW_LENGTH',
    'Document',
    'Span',
    'Code',
    'Containment',
    'CausalEdge',
    'Graph',
    'Loop',
    'ExportBundle',
    'PipelineArtifacts',
    'clamp_unit',
    'AuditEventType',
    'AuditLogEntry',
]
