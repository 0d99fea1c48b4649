"""
Export Tests
============

Tests for the file exporter and the Mermaid renderer.

GUARANTEES UNDER TEST:
======================
1. Every artifact lands in the bundle and on disk
2. JSON output is stable across runs
3. Evidence quotes are escaped in the provenance HTML
4. File system failures surface as ExportError
"""

import csv
import json
from pathlib import Path

import pytest

from cldengine.contracts.base import CodeType, ExportError, Group, Polarity
from cldengine.contracts.model import CausalEdge, Code, Graph, Span
from cldengine.core.loops import find_simple_cycles
from cldengine.export import FileExporter, atomic_write, render_mermaid, sanitize_id


def create_graph() -> Graph:
    quote = Span(doc_id="d<1>", start=0, end=30, text="Performance reduces <b>under</b>")
    variables = tuple(
        Code(id=f"var:{label}", label=label, type=CodeType.VARIABLE, group=Group.OTHER)
        for label in ('performance', 'underperformance')
    )
    edges = (
        CausalEdge('var:performance', 'var:underperformance', Polarity.NEGATIVE, 0.9, evidence=(quote,)),
        CausalEdge('var:underperformance', 'var:performance', Polarity.POSITIVE, 0.8, evidence=(quote,)),
    )
    return Graph(variables=variables, edges=edges)


class TestMermaid:

    def test_sanitize_id(self):
        assert sanitize_id("var:resource allocation") == "var_resource_allocation"
        assert sanitize_id(":::") == "N"

    def test_render(self):
        text = render_mermaid(create_graph())
        lines = text.splitlines()
        assert lines[0] == "graph LR"
        assert '    var_performance["performance"]' in lines
        assert '    var_performance -- "-" --> var_underperformance' in lines
        assert "    linkStyle 0 stroke:#c0392b,stroke-dasharray: 5 5;" in lines
        assert "    linkStyle 1 stroke:#2c3e50;" in lines

    def test_colliding_ids_are_disambiguated(self):
        variables = tuple(
            Code(id=i, label=i, type=CodeType.VARIABLE, group=Group.OTHER)
            for i in ('var:a b', 'var:a-b')
        )
        text = render_mermaid(Graph(variables=variables, edges=()))
        assert 'var_a_b["var:a b"]' in text
        assert 'var_a_b_1["var:a-b"]' in text

    def test_suffix_never_reuses_another_node_id(self):
        variables = tuple(
            Code(id=i, label=i, type=CodeType.VARIABLE, group=Group.OTHER)
            for i in ('var:a b', 'var:a_b', 'var:a b 1')
        )
        text = render_mermaid(Graph(variables=variables, edges=()))
        node_ids = [line.split('[', 1)[0].strip() for line in text.splitlines() if line.endswith('"]')]
        assert node_ids == ['var_a_b', 'var_a_b_1', 'var_a_b_1_1']


class TestFileExporter:

    def test_writes_every_artifact(self, tmp_path):
        graph = create_graph()
        loops = find_simple_cycles(graph)
        bundle = FileExporter(tmp_path / "out").export(graph, loops, base_name="study")

        for path in bundle.to_dict().values():
            assert Path(path).parent == tmp_path / "out"
            assert Path(path).exists()
        assert bundle.graph_json_path.endswith("study.graph.json")
        assert bundle.cld_mermaid_path.endswith("study.mmd")

    def test_graph_json_contents(self, tmp_path):
        graph = create_graph()
        bundle = FileExporter(tmp_path).export(graph, find_simple_cycles(graph))
        with open(bundle.graph_json_path, encoding='utf-8') as f:
            payload = json.load(f)
        assert [v['id'] for v in payload['variables']] == ['var:performance', 'var:underperformance']
        assert payload['loops'][0]['type'] == 'balancing'
        assert payload['metrics']['cyclicComponentCount'] == 1

    def test_json_is_stable(self, tmp_path):
        graph = create_graph()
        loops = find_simple_cycles(graph)
        first = FileExporter(tmp_path / "a").export(graph, loops)
        second = FileExporter(tmp_path / "b").export(graph, loops)
        with open(first.graph_json_path, 'rb') as f1, open(second.graph_json_path, 'rb') as f2:
            assert f1.read() == f2.read()

    def test_csv_contents(self, tmp_path):
        bundle = FileExporter(tmp_path).export(create_graph(), ())
        with open(bundle.csv_edges_path, newline='', encoding='utf-8') as f:
            rows = list(csv.DictReader(f))
        assert rows[0] == {
            'id': 'e:var:performance->var:underperformance:-',
            'from': 'var:performance',
            'to': 'var:underperformance',
            'polarity': '-',
            'confidence': '0.900',
        }
        with open(bundle.csv_nodes_path, newline='', encoding='utf-8') as f:
            nodes = list(csv.DictReader(f))
        assert nodes[1] == {'id': 'var:underperformance', 'label': 'underperformance', 'group': 'other'}

    def test_provenance_is_escaped(self, tmp_path):
        bundle = FileExporter(tmp_path).export(create_graph(), ())
        with open(bundle.provenance_html_path, encoding='utf-8') as f:
            page = f.read()
        assert "&lt;b&gt;under&lt;/b&gt;" in page
        assert "<b>under</b>" not in page
        assert "d&lt;1&gt;" in page

    def test_no_partial_files_left(self, tmp_path):
        FileExporter(tmp_path).export(create_graph(), ())
        assert not list(tmp_path.glob(".*.partial"))

    def test_unwritable_destination(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding='utf-8')
        with pytest.raises(ExportError):
            FileExporter(blocker).export(create_graph(), ())


class TestAtomicWrite:

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("old", encoding='utf-8')
        atomic_write(target, "new")
        assert target.read_text(encoding='utf-8') == "new"
