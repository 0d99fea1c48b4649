"""
Topology Engine
===============

Structural analysis of the consolidated causal graph using networkx.

This engine computes TOPOLOGY (geometry), not IMPORTANCE (judgment).

ALLOWED:
- Graph construction (parallel edges of opposite polarity are kept)
- Strongly connected components (where feedback can exist)
- Structural metrics (density, connectedness, self-loops)

FORBIDDEN:
- Centrality measures - implies ranking of variables
- Any use of edge confidence; topology is binary, connected or not
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

import networkx as nx

from ..contracts.model import Graph


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for a causal graph."""
    node_count: int
    edge_count: int
    density: float
    is_weakly_connected: bool
    component_count: int
    cyclic_component_count: int
    self_loop_count: int

    def to_dict(self) -> dict:
        return {
            'nodeCount': self.node_count,
            'edgeCount': self.edge_count,
            'density': self.density,
            'isWeaklyConnected': self.is_weakly_connected,
            'componentCount': self.component_count,
            'cyclicComponentCount': self.cyclic_component_count,
            'selfLoopCount': self.self_loop_count,
        }


class CausalTopology:
    """
    Wraps a networkx MultiDiGraph built from a Graph.

    Node keys are variable ids; edge keys are edge ids.
    """

    def __init__(self, graph: Graph):
        self._graph = nx.MultiDiGraph()
        for variable in graph.variables:
            self._graph.add_node(variable.id, label=variable.label)
        for edge in graph.edges:
            self._graph.add_edge(
                edge.from_variable_id,
                edge.to_variable_id,
                key=edge.id,
                polarity=edge.polarity.value,
            )

    @property
    def nx_graph(self) -> nx.MultiDiGraph:
        return self._graph

    def strongly_connected_components(self) -> List[Tuple[str, ...]]:
        """Components as sorted id tuples, ordered by their smallest id."""
        components = [tuple(sorted(c)) for c in nx.strongly_connected_components(self._graph)]
        return sorted(components)

    def cyclic_node_ids(self) -> FrozenSet[str]:
        """
        Nodes that can lie on a cycle through at least one other node:
        members of strongly connected components of size >= 2.
        """
        nodes = set()
        for component in self.strongly_connected_components():
            if len(component) >= 2:
                nodes.update(component)
        return frozenset(nodes)

    def same_component(self) -> dict:
        """Node id -> component index."""
        mapping = {}
        for i, component in enumerate(self.strongly_connected_components()):
            for node in component:
                mapping[node] = i
        return mapping

    def compute_metrics(self) -> GraphMetrics:
        if self._graph.number_of_nodes() == 0:
            return GraphMetrics(0, 0, 0.0, False, 0, 0, 0)

        components = self.strongly_connected_components()
        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            is_weakly_connected=nx.is_weakly_connected(self._graph),
            component_count=nx.number_weakly_connected_components(self._graph),
            cyclic_component_count=sum(1 for c in components if len(c) >= 2),
            self_loop_count=nx.number_of_selfloops(self._graph),
        )
