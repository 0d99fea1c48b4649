"""
Loop Finder
===========

Discovers simple feedback cycles in the consolidated graph and classifies
them by the sign product of their edges.

SEARCH:
=======
- Depth-first from every variable (in variable order), explicit stack
- No node repeats except the start, which may only close a cycle after
  at least one edge has been traversed (self-loops are never reported)
- Each cycle is keyed by its sorted edge ids, so rotations found from
  other start nodes are reported once
- Paths longer than max_depth nodes are not expanded; very long cycles
  are not reported

Only nodes inside a strongly connected component of size >= 2 can lie on
such a cycle, so the search is restricted to those nodes and to edges
inside a single component. This does not change the result.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..contracts.audit import AuditEventType
from ..contracts.base import LoopType
from ..contracts.model import CausalEdge, Graph, Loop
from ..observability import LogCollector
from .topology import CausalTopology


DEFAULT_MAX_DEPTH = 6


def classify_loop(edges: Sequence[CausalEdge]) -> LoopType:
    """Non-negative sign product is reinforcing; negative is balancing."""
    sign = 1
    for edge in edges:
        sign *= edge.polarity.sign
    return LoopType.REINFORCING if sign >= 0 else LoopType.BALANCING


def build_adjacency(
    edges: Sequence[CausalEdge],
    topology: Optional[CausalTopology] = None
) -> Dict[str, List[CausalEdge]]:
    """
    Variable id -> outgoing edges, in edge order.

    With a topology, edges that cross strongly connected components are
    left out since they cannot be on a cycle.
    """
    component = topology.same_component() if topology is not None else None
    adjacency: Dict[str, List[CausalEdge]] = {}
    for edge in edges:
        if component is not None and component.get(edge.from_variable_id) != component.get(edge.to_variable_id):
            continue
        adjacency.setdefault(edge.from_variable_id, []).append(edge)
    return adjacency


def find_simple_cycles(
    graph: Graph,
    max_depth: int = DEFAULT_MAX_DEPTH,
    collector: Optional[LogCollector] = None
) -> Tuple[Loop, ...]:
    """Find and classify all simple cycles of at most max_depth nodes."""
    topology = CausalTopology(graph)
    cyclic_nodes = topology.cyclic_node_ids()
    adjacency = build_adjacency(graph.edges, topology)

    loops: List[Loop] = []
    seen: Set[str] = set()

    for variable in graph.variables:
        start = variable.id
        if start not in cyclic_nodes:
            continue

        # Frames: (edge to traverse, nodes so far, edges so far)
        stack = [(edge, (start,), ()) for edge in reversed(adjacency.get(start, []))]
        while stack:
            edge, path_nodes, path_edges = stack.pop()
            next_node = edge.to_variable_id

            if next_node == start and path_edges:
                full_edges = path_edges + (edge,)
                edge_ids = tuple(e.id for e in full_edges)
                key = '|'.join(sorted(edge_ids))
                if key in seen:
                    continue
                seen.add(key)
                loops.append(Loop(
                    id=f"loop:{len(loops) + 1}",
                    node_ids=path_nodes,
                    edge_ids=edge_ids,
                    type=classify_loop(full_edges),
                ))
                continue

            if next_node in path_nodes:
                continue
            nodes = path_nodes + (next_node,)
            if len(nodes) > max_depth:
                continue
            edges = path_edges + (edge,)
            stack.extend((e, nodes, edges) for e in reversed(adjacency.get(next_node, [])))

    if collector:
        collector.log(
            AuditEventType.STAGE_COMPLETED,
            action="loops_found",
            metadata={
                'loop_count': len(loops),
                'reinforcing': sum(1 for lp in loops if lp.type is LoopType.REINFORCING),
                'balancing': sum(1 for lp in loops if lp.type is LoopType.BALANCING),
                'max_depth': max_depth,
            },
        )
    return tuple(loops)
