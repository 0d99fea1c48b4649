"""
File Exporter
=============

Writes a finished run to a directory.

ARTIFACTS (per base name):
- <base>.graph.json       variables, edges, loops, topology metrics
- <base>.nodes.csv        id,label,group
- <base>.edges.csv        id,from,to,polarity,confidence
- <base>.provenance.html  every edge with its evidence quotes
- <base>.mmd              Mermaid CLD definition

GUARANTEES:
- Every file is written atomically (temp file, then rename)
- JSON is serialized with stable key order
- File system failures surface as ExportError
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Sequence, Union
import csv
import html
import io
import json

from ..contracts.base import ExportError
from ..contracts.model import CausalEdge, Code, ExportBundle, Graph, Loop
from ..core.topology import CausalTopology
from .base import Exporter
from .mermaid import render_mermaid


def atomic_write(file_path: Path, content: str) -> None:
    """Write to a temp file beside the target, then rename over it."""
    temp_path = file_path.with_name(f".{file_path.name}.partial")
    try:
        with open(temp_path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        temp_path.replace(file_path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


def render_graph_json(graph: Graph, loops: Sequence[Loop]) -> str:
    payload = graph.to_dict()
    payload['loops'] = [lp.to_dict() for lp in loops]
    payload['metrics'] = CausalTopology(graph).compute_metrics().to_dict()
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)


def render_nodes_csv(variables: Sequence[Code]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(['id', 'label', 'group'])
    for v in variables:
        writer.writerow([v.id, v.label, v.group.value])
    return buffer.getvalue()


def render_edges_csv(edges: Sequence[CausalEdge]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(['id', 'from', 'to', 'polarity', 'confidence'])
    for e in edges:
        writer.writerow([
            e.id, e.from_variable_id, e.to_variable_id,
            e.polarity.value, f"{e.confidence:.3f}",
        ])
    return buffer.getvalue()


def render_provenance_html(graph: Graph) -> str:
    """One block per edge listing every evidence quote with its offsets."""
    parts: List[str] = [
        '<!doctype html>',
        '<meta charset="utf-8"/>',
        '<title>Provenance</title>',
        '<style>body{font-family:system-ui,sans-serif;line-height:1.4}'
        ' .edge{margin:1em 0;padding:0.5em;border:1px solid #ddd;border-radius:8px}'
        ' .ev{margin-left:1em;color:#555}</style>',
        '<h1>Edge provenance</h1>',
    ]
    for edge in graph.edges:
        source = html.escape(graph.label_for(edge.from_variable_id))
        target = html.escape(graph.label_for(edge.to_variable_id))
        sign = '+' if edge.polarity.value == '+' else '&minus;'
        quotes = ''.join(
            f'<div class="ev"><strong>{html.escape(sp.doc_id)}</strong>'
            f' [{sp.start}-{sp.end}] {html.escape(sp.text_preview)}</div>'
            for sp in edge.evidence
        )
        parts.append(
            f'<div class="edge" id="{html.escape(edge.id)}"><div><strong>{source}</strong>'
            f' -{sign}-&gt; <strong>{target}</strong>'
            f' (conf {edge.confidence:.2f})</div>{quotes}</div>'
        )
    return '\n'.join(parts) + '\n'


class FileExporter(Exporter):
    """Exports graph JSON, node/edge CSV, provenance HTML and a Mermaid CLD."""

    def __init__(self, output_dir: Union[str, Path]):
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def export(
        self,
        graph: Graph,
        loops: Sequence[Loop],
        base_name: str = "causal"
    ) -> ExportBundle:
        out = self._output_dir
        paths = {
            'graph': out / f"{base_name}.graph.json",
            'nodes': out / f"{base_name}.nodes.csv",
            'edges': out / f"{base_name}.edges.csv",
            'provenance': out / f"{base_name}.provenance.html",
            'cld': out / f"{base_name}.mmd",
        }
        try:
            out.mkdir(parents=True, exist_ok=True)
            atomic_write(paths['graph'], render_graph_json(graph, loops))
            atomic_write(paths['nodes'], render_nodes_csv(graph.variables))
            atomic_write(paths['edges'], render_edges_csv(graph.edges))
            atomic_write(paths['provenance'], render_provenance_html(graph))
            atomic_write(paths['cld'], render_mermaid(graph))
        except OSError as e:
            raise ExportError(f"Failed to export to {out}: {e}") from e

        return ExportBundle(
            graph_json_path=str(paths['graph']),
            csv_nodes_path=str(paths['nodes']),
            csv_edges_path=str(paths['edges']),
            provenance_html_path=str(paths['provenance']),
            cld_mermaid_path=str(paths['cld']),
        )
