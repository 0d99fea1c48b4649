"""
CLD Engine

Deterministic, rule-based conversion of qualitative text into a causal
loop diagram: variables, polarity-signed causal edges and classified
feedback loops, each traceable to the sentence span that justified it.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable data model, enumerations and error types
   - Imported by every layer; imports nothing from them

2. INGESTION (ingestion/)
   - Normalizes text and segments it into sentence Spans
   - MUST NOT: Interpret content

3. CODING (coding/)
   - Open coding: Spans -> themes; axial coding: themes -> variables
   - MUST NOT: Infer causality (containment is hierarchical only)

4. CORE (core/)
   - Causal edge extraction, consolidation, topology, loop discovery
   - MUST NOT: Perform I/O

5. OBSERVABILITY (observability/)
   - Append-only, per-run audit trail
   - MUST NOT: Modify pipeline behavior

6. EXPORT (export/)
   - Optional downstream collaborators (JSON, CSV, HTML, Mermaid)

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: configuration and all artifacts are frozen
- Deterministic: identical text and config yield identical output
- Explicit errors: bad config/input raises at construction time,
  empty results are data
"""

from .config import CausalConfig, DEFAULT_CONFIG, merge_config, load_config_overrides
from .contracts import (
    Polarity,
    CodeType,
    Group,
    LoopType,
    Document,
    Span,
    Code,
    Containment,
    CausalEdge,
    Graph,
    Loop,
    ExportBundle,
    PipelineArtifacts,
    CldEngineError,
    ConfigurationError,
    InputValidationError,
    NoCausalRelationshipsError,
    ExportError,
)
from .pipeline import CausalPipeline, PipelineOptions, run_pipeline, require_causal_structure

__version__ = "0.1.0"

__all__ = [
    'CausalConfig',
    'DEFAULT_CONFIG',
    'merge_config',
    'load_config_overrides',
    'Polarity',
    'CodeType',
    'Group',
    'LoopType',
    'Document',
    'Span',
    'Code',
    'Containment',
    'CausalEdge',
    'Graph',
    'Loop',
    'ExportBundle',
    'PipelineArtifacts',
    'CldEngineError',
    'ConfigurationError',
    'InputValidationError',
    'NoCausalRelationshipsError',
    'ExportError',
    'CausalPipeline',
    'PipelineOptions',
    'run_pipeline',
    'require_causal_structure',
]
