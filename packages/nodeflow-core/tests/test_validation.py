from __future__ import annotations

import textwrap
from pathlib import Path

from nodeflow.core.validation import validate_graph_yaml


def _write(tmp_path: Path, name: str, yaml_text: str) -> Path:
    p = tmp_path / name
    p.write_text(textwrap.dedent(yaml_text).strip() + "\n", encoding="utf-8")
    return p


def _codes(items):
    return [i["code"] for i in items]


def test_valid_graph_reports_ok(tmp_path: Path, settings):
    p = _write(
        tmp_path,
        "ok.yaml",
        """
        graph: {id: ok}
        nodes:
          - id: a
            links: [{to: b}]
          - id: b
        """,
    )
    rep = validate_graph_yaml(str(p), settings=settings)
    assert rep["ok"] is True
    assert rep["errors"] == []
    assert rep["warnings"] == []
    assert rep["graph_yaml"] == str(p)


def test_semantic_errors_are_collected(tmp_path: Path, settings):
    p = _write(
        tmp_path,
        "bad.yaml",
        """
        graph: {id: bad, entry: ghost}
        nodes:
          - id: a
            when: "ctx.n >"
            use: [{type: nope}]
            sinks: [{type: nada}]
            links: [{to: missing}]
          - id: a
        """,
    )
    rep = validate_graph_yaml(str(p), settings=settings)
    assert rep["ok"] is False
    codes = _codes(rep["errors"])
    for code in ("duplicate_node", "invalid_expression", "unknown_step", "unknown_sink", "unknown_link_target", "unknown_entry"):
        assert code in codes


def test_cycles_and_unreachable_nodes_are_warnings(tmp_path: Path, settings):
    p = _write(
        tmp_path,
        "cyc.yaml",
        """
        graph: {id: cyc}
        nodes:
          - id: a
            links: [{to: b}]
          - id: b
            links: [{to: a}]
          - id: lonely
        """,
    )
    rep = validate_graph_yaml(str(p), settings=settings)
    assert rep["ok"] is True
    codes = _codes(rep["warnings"])
    assert "cycle_detected" in codes
    assert "unreachable_node" in codes
    cyc = next(w for w in rep["warnings"] if w["code"] == "cycle_detected")
    assert cyc["msg"] == "Cycle: a -> b -> a"


def test_schema_and_yaml_errors(tmp_path: Path, settings):
    schema = _write(tmp_path, "schema.yaml", "graph: {id: s}\nnodes: [{id: a, links: [{target: b}]}]\n")
    rep = validate_graph_yaml(str(schema), settings=settings)
    assert rep["ok"] is False
    assert set(_codes(rep["errors"])) == {"schema_error"}

    broken = tmp_path / "broken.yaml"
    broken.write_text("graph: [unclosed\n", encoding="utf-8")
    rep = validate_graph_yaml(str(broken), settings=settings)
    assert _codes(rep["errors"]) == ["yaml_error"]

    rep = validate_graph_yaml(str(tmp_path / "missing.yaml"), settings=settings)
    assert _codes(rep["errors"]) == ["yaml_error"]


def test_missing_inputs_and_empty_graphs_are_errors(tmp_path: Path, settings):
    p = _write(
        tmp_path,
        "inputs.yaml",
        """
        graph: {id: inputs}
        nodes:
          - id: a
            use:
              - {type: increment}
              - {type: increment, inputs: {key: n}}
        """,
    )
    rep = validate_graph_yaml(str(p), settings=settings)
    assert rep["ok"] is False
    assert [(e["code"], e["loc"]) for e in rep["errors"]] == [("missing_input", "nodes[0].use[0].inputs")]
    assert "key" in rep["errors"][0]["msg"]

    empty = _write(tmp_path, "empty.yaml", "graph: {id: empty}\nnodes: []\n")
    rep = validate_graph_yaml(str(empty), settings=settings)
    assert rep["ok"] is False
    assert _codes(rep["errors"]) == ["no_nodes"]
