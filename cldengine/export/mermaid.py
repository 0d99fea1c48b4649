"""
Mermaid CLD Renderer

Renders a causal graph as a Mermaid flowchart definition.
Purely presentational: NO inference, NO repair.

Encoding:
- One node per variable, labelled with the variable label
- Edge label is the polarity sign
- '-' edges are drawn dashed, '+' edges solid
"""

from __future__ import annotations
from typing import Dict, List, Set
import re

from ..contracts.base import Polarity
from ..contracts.model import Graph


_UNSAFE_ID = re.compile(r'[^a-zA-Z0-9_]+')


def sanitize_id(value: str) -> str:
    """Mermaid-safe node id."""
    return _UNSAFE_ID.sub('_', value).strip('_') or 'N'


def _quote(text: str) -> str:
    return text.replace('"', '#quot;')


def render_mermaid(graph: Graph, direction: str = "LR") -> str:
    """Generate a Mermaid definition for the graph."""
    lines = [f"graph {direction}"]

    node_ids: Dict[str, str] = {}
    taken: Set[str] = set()
    for variable in graph.variables:
        base = sanitize_id(variable.id)
        node_id = base
        # distinct variables may sanitize to the same id
        suffix = 0
        while node_id in taken:
            suffix += 1
            node_id = f"{base}_{suffix}"
        taken.add(node_id)
        node_ids[variable.id] = node_id
        lines.append(f'    {node_id}["{_quote(variable.label)}"]')

    link_styles: List[str] = []
    for i, edge in enumerate(graph.edges):
        source = node_ids.get(edge.from_variable_id, sanitize_id(edge.from_variable_id))
        target = node_ids.get(edge.to_variable_id, sanitize_id(edge.to_variable_id))
        lines.append(f'    {source} -- "{edge.polarity.value}" --> {target}')
        if edge.polarity is Polarity.NEGATIVE:
            link_styles.append(f"    linkStyle {i} stroke:#c0392b,stroke-dasharray: 5 5;")
        else:
            link_styles.append(f"    linkStyle {i} stroke:#2c3e50;")

    return "\n".join(lines + link_styles) + "\n"
