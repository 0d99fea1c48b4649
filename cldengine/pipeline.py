"""
Pipeline Orchestration Module
=============================

Sequences every stage of a run while keeping stages independent.

LAYER FLOW:
===========
1. Ingestion: raw items -> Documents + sentence Spans
2. Open coding: Spans -> theme Codes
3. Axial coding: themes -> variable Codes + Containment
4. Causality: Spans x variables -> raw CausalEdges
5. Consolidation: raw edges -> merged, pruned edges -> Graph
6. Loop discovery: Graph -> Loops
7. Export (optional): Graph + Loops -> ExportBundle

DESIGN PRINCIPLES:
==================
1. One immutable CausalConfig per run, merged once up front
2. Stages communicate only through contracts
3. Every run gets its own AuditTrail
4. No retries and no I/O beyond the optional exporter
5. Empty results are reported, never raised; raising is the caller's
   decision (see require_causal_structure)
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from .coding import aggregate_themes_to_variables, extract_themes
from .config import CausalConfig, DEFAULT_CONFIG, merge_config
from .contracts.audit import AuditEventType
from .contracts.base import NoCausalRelationshipsError
from .contracts.model import PipelineArtifacts
from .core import (
    CausalTopology,
    build_graph,
    consolidate_edges,
    extract_causal_edges,
    find_simple_cycles,
)
from .export import Exporter, FileExporter
from .ingestion import DocumentInput, ingest_documents
from .observability import AuditTrail


@dataclass(frozen=True)
class PipelineOptions:
    """
    Per-run options.

    `overrides` is a partial config mapping merged over `config`.
    An explicit `exporter` wins over `export_dir`.
    """
    config: CausalConfig = DEFAULT_CONFIG
    overrides: Optional[Mapping[str, Any]] = None
    export_dir: Optional[Union[str, Path]] = None
    base_name: str = "causal"
    exporter: Optional[Exporter] = None
    max_loop_depth: Optional[int] = None

    def resolve_config(self) -> CausalConfig:
        cfg = merge_config(self.config, self.overrides)
        if self.max_loop_depth is not None:
            cfg = merge_config(cfg, {'loop_max_depth': self.max_loop_depth})
        return cfg

    def resolve_exporter(self) -> Optional[Exporter]:
        if self.exporter is not None:
            return self.exporter
        if self.export_dir is not None:
            return FileExporter(self.export_dir)
        return None


class CausalPipeline:
    """
    Deterministic text -> causal loop diagram pipeline.

    The config is resolved (and validated) at construction, so invalid
    overrides fail before any document is processed.
    """

    def __init__(self, options: Optional[PipelineOptions] = None):
        self._options = options or PipelineOptions()
        self._config = self._options.resolve_config()
        self._exporter = self._options.resolve_exporter()

    @property
    def config(self) -> CausalConfig:
        return self._config

    def run(
        self,
        documents: Iterable[Union[DocumentInput, Mapping[str, Any]]]
    ) -> PipelineArtifacts:
        cfg = self._config
        trail = AuditTrail()
        log = trail.collector("pipeline")

        log.log(AuditEventType.STAGE_STARTED, action="run_started")

        docs, spans = ingest_documents(documents, collector=trail.collector("ingestion"))
        log.log(
            AuditEventType.STAGE_COMPLETED,
            action="ingested",
            metadata={'document_count': len(docs), 'span_count': len(spans)},
        )

        themes = extract_themes(spans, cfg, collector=trail.collector("open_coding"))
        variables, containment = aggregate_themes_to_variables(
            themes, cfg, collector=trail.collector("axial_coding")
        )
        raw_edges = extract_causal_edges(
            spans, variables, cfg, collector=trail.collector("causality")
        )
        edges = consolidate_edges(raw_edges, cfg, collector=trail.collector("consolidation"))
        graph = build_graph(variables, edges)
        loops = find_simple_cycles(
            graph, max_depth=cfg.loop_max_depth, collector=trail.collector("loops")
        )
        metrics = CausalTopology(graph).compute_metrics()

        if not variables or not edges:
            log.log(
                AuditEventType.EMPTY_RESULT,
                action="no_causal_structure",
                metadata={'variable_count': len(variables), 'edge_count': len(edges)},
            )

        exports = None
        if self._exporter is not None:
            exports = self._exporter.export(graph, loops, base_name=self._options.base_name)
            trail.collector("export").log(
                AuditEventType.EXPORT_WRITTEN,
                action="exported",
                entity_id=self._options.base_name,
                metadata={'graph_json_path': exports.graph_json_path},
            )

        log.log(
            AuditEventType.STAGE_COMPLETED,
            action="run_completed",
            metadata={
                'variable_count': len(variables),
                'edge_count': len(edges),
                'loop_count': len(loops),
            },
        )

        return PipelineArtifacts(
            documents=docs,
            sentences=spans,
            themes=themes,
            variables=variables,
            containment=containment,
            edges=edges,
            graph=graph,
            loops=loops,
            metrics=metrics.to_dict(),
            exports=exports,
            audit_log=trail.entries(),
        )


def run_pipeline(
    documents: Iterable[Union[DocumentInput, Mapping[str, Any]]],
    options: Optional[PipelineOptions] = None
) -> PipelineArtifacts:
    """Run stages 1-6 (and export, if requested) over `documents`."""
    return CausalPipeline(options).run(documents)


def require_causal_structure(artifacts: PipelineArtifacts) -> PipelineArtifacts:
    """
    Caller-level check for interactive extraction.

    Raises NoCausalRelationshipsError when the run produced no variables
    or no edges; otherwise returns the artifacts unchanged.
    """
    if artifacts.is_empty:
        raise NoCausalRelationshipsError(len(artifacts.variables), len(artifacts.edges))
    return artifacts
