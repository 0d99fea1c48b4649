"""
Core Causal Engine

RESPONSIBILITY: Causal edges, consolidation, topology and feedback loops
ALLOWED INPUTS: Sentence Spans and variable Codes
OUTPUTS: CausalEdge tuples, Graph, Loop tuples, GraphMetrics

MUST NOT: Perform I/O, read wall-clock time, or depend on scheduling.
Everything here is a pure function of its inputs and the config.
"""

from .causality import (
    SynonymIndex,
    polarity_from_sentence,
    earliest_cue,
    count_cue_hits,
    estimate_confidence,
    directional_edges,
    pairwise_edges,
    extract_causal_edges,
)
from .consolidation import MERGE_UPLIFT, merge_confidence, consolidate_edges, build_graph
from .topology import GraphMetrics, CausalTopology
from .loops import DEFAULT_MAX_DEPTH, classify_loop, build_adjacency, find_simple_cycles

__all__ = [
    'SynonymIndex',
    'polarity_from_sentence',
    'earliest_cue',
    'count_cue_hits',
    'estimate_confidence',
    'directional_edges',
    'pairwise_edges',
    'extract_causal_edges',
    'MERGE_UPLIFT',
    'merge_confidence',
    'consolidate_edges',
    'build_graph',
    'GraphMetrics',
    'CausalTopology',
    'DEFAULT_MAX_DEPTH',
    'classify_loop',
    'build_adjacency',
    'find_simple_cycles',
]
