"""
Property Tests for Pipeline Contracts
Verifies span integrity, confidence bounds, loop sign law and
consolidation idempotence over generated inputs.
"""

import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from cldengine.config import DEFAULT_CONFIG
from cldengine.contracts.base import CodeType, Group, LoopType, Polarity
from cldengine.contracts.model import CausalEdge, Code, Graph
from cldengine.core.consolidation import consolidate_edges
from cldengine.core.loops import find_simple_cycles
from cldengine.ingestion import normalize_text, sentence_split
from cldengine.pipeline import run_pipeline

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

VOCABULARY = [
    'underperformance', 'performance', 'resource allocation', 'allocation',
    'scrapping', 'rework', 'design', 'better design', 'capability',
    'leads to', 'increases', 'reduces', 'lowers', 'triggers', 'because',
    'the', 'council', 'residents', 'budget', 'and', '2024',
]

SEPARATORS = ['. ', '! ', '? ', '\n', '\r\n', ', ', ' ']


@composite
def sentences_text(draw):
    """Text assembled from domain words, cues and terminators."""
    parts = []
    for _ in range(draw(st.integers(min_value=0, max_value=25))):
        parts.append(draw(st.sampled_from(VOCABULARY)))
        parts.append(draw(st.sampled_from(SEPARATORS)))
    return ''.join(parts)


@composite
def documents(draw):
    count = draw(st.integers(min_value=1, max_value=3))
    return [{'id': f'doc_{i}', 'text': draw(sentences_text())} for i in range(count)]


NODES = ['a', 'b', 'c', 'd', 'e']


@composite
def graphs(draw):
    """Small random graphs, consolidated so edge ids are unique."""
    links = draw(st.lists(
        st.tuples(st.sampled_from(NODES), st.sampled_from(NODES), st.sampled_from(Polarity)),
        max_size=12,
    ))
    variables = tuple(Code(id=n, label=n, type=CodeType.VARIABLE, group=Group.OTHER) for n in NODES)
    edges = consolidate_edges([
        CausalEdge(from_variable_id=a, to_variable_id=b, polarity=pol, confidence=0.9)
        for a, b, pol in links
    ])
    return Graph(variables=variables, edges=edges)


# =============================================================================
# PROPERTY TESTS
# =============================================================================

@given(st.text())
def test_span_integrity_arbitrary_text(text):
    """Every span lies inside the normalized text and trims to its sentence."""
    normalized = normalize_text(text)
    spans = sentence_split(text, doc_id='d')
    for sp in spans:
        assert 0 <= sp.start < sp.end <= len(normalized)
        assert normalized[sp.start:sp.end].strip() == sp.text
        assert sp.text
    for earlier, later in zip(spans, spans[1:]):
        assert earlier.end <= later.start


@given(sentences_text())
def test_no_sentence_crosses_a_newline(text):
    for sp in sentence_split(text):
        assert '\n' not in sp.text


@settings(deadline=None)
@given(documents())
def test_edge_confidence_bounds(docs):
    """Surviving edges are within [0, 1] and at or above the prune threshold."""
    artifacts = run_pipeline(docs)
    for edge in artifacts.edges:
        assert 0.0 <= edge.confidence <= 1.0
        assert edge.confidence >= DEFAULT_CONFIG.prune_threshold


@settings(deadline=None)
@given(documents())
def test_every_edge_has_evidence(docs):
    """Edges cite at least one sentence span produced by ingestion."""
    artifacts = run_pipeline(docs)
    sentences = set(artifacts.sentences)
    variable_ids = {v.id for v in artifacts.variables}
    for edge in artifacts.edges:
        assert edge.evidence
        assert all(sp in sentences for sp in edge.evidence)
        assert edge.from_variable_id in variable_ids
        assert edge.to_variable_id in variable_ids


@settings(deadline=None)
@given(documents())
def test_containment_is_not_causal(docs):
    artifacts = run_pipeline(docs)
    theme_ids = {t.id for t in artifacts.themes}
    variable_ids = {v.id for v in artifacts.variables}
    for c in artifacts.containment:
        assert c.parent_code_id in variable_ids
        assert c.child_code_id in theme_ids
    for edge in artifacts.edges:
        assert edge.from_variable_id not in theme_ids
        assert edge.to_variable_id not in theme_ids


@settings(deadline=None)
@given(documents())
def test_consolidation_idempotent_on_pipeline_output(docs):
    artifacts = run_pipeline(docs)
    assert consolidate_edges(artifacts.edges) == artifacts.edges


@given(graphs())
def test_loop_sign_law(graph):
    """Odd number of '-' edges is balancing, otherwise reinforcing."""
    by_id = {e.id: e for e in graph.edges}
    for loop in find_simple_cycles(graph):
        negatives = sum(1 for eid in loop.edge_ids if by_id[eid].polarity is Polarity.NEGATIVE)
        expected = LoopType.BALANCING if negatives % 2 else LoopType.REINFORCING
        assert loop.type == expected


@given(graphs())
def test_loops_are_simple_closed_walks(graph):
    by_id = {e.id: e for e in graph.edges}
    loops = find_simple_cycles(graph)
    for loop in loops:
        assert len(set(loop.node_ids)) == len(loop.node_ids)
        assert len(loop.edge_ids) == len(loop.node_ids)
        assert 2 <= len(loop.node_ids) <= 6
        for i, eid in enumerate(loop.edge_ids):
            edge = by_id[eid]
            assert edge.from_variable_id == loop.node_ids[i]
            assert edge.to_variable_id == loop.node_ids[(i + 1) % len(loop.node_ids)]
    keys = [tuple(sorted(lp.edge_ids)) for lp in loops]
    assert len(keys) == len(set(keys))


@given(graphs())
def test_graph_consolidation_idempotent(graph):
    assert consolidate_edges(graph.edges) == graph.edges
