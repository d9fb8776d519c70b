from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

# Ensure built-ins register even when validation is called standalone.
from nodeflow.core import builtins as _builtins  # noqa: F401
from nodeflow.core.exception import ExpressionError
from nodeflow.core.expressions import parse_when
from nodeflow.core.plugins import load_all_plugins
from nodeflow.core.registry.steps import get_sink, get_step, list_sinks, list_steps
from nodeflow.core.runtime.settings import Settings, load_settings
from nodeflow.core.spec import GraphSpec

log = logging.getLogger('nodeflow.core.validation')


@dataclass(frozen=True)
class GraphValidationIssue:
    code: str
    loc: str
    msg: str

    def as_dict(self) -> dict:
        return {"code": self.code, "loc": self.loc, "msg": self.msg}


@dataclass(frozen=True)
class ScanResult:
    """Shared scanner output used by both validation and the graph builder."""

    errors: list[GraphValidationIssue]
    warnings: list[GraphValidationIssue]


def _check_when(expr: str | None, loc: str, errors: list[GraphValidationIssue]) -> None:
    if expr is None:
        return
    try:
        parse_when(expr)
    except ExpressionError as e:
        errors.append(GraphValidationIssue("invalid_expression", loc, str(e)))


def _check_inputs(required: set[str], inputs: Dict[str, Any], loc: str, errors: list[GraphValidationIssue]) -> None:
    missing = sorted(k for k in required if k not in inputs)
    if missing:
        errors.append(GraphValidationIssue("missing_input", loc, f"Missing required inputs: {missing}"))


def _find_cycles(edges: Dict[str, List[str]]) -> list[list[str]]:
    cycles: list[list[str]] = []
    state: Dict[str, int] = {}  # 1 = on path, 2 = done
    path: list[str] = []

    def visit(n: str) -> None:
        state[n] = 1
        path.append(n)
        for m in edges.get(n, []):
            if state.get(m) == 1:
                cycles.append(path[path.index(m):] + [m])
            elif m not in state:
                visit(m)
        path.pop()
        state[n] = 2

    for n in edges:
        if n not in state:
            visit(n)
    return cycles


def _reachable(edges: Dict[str, List[str]], start: str) -> set[str]:
    seen = {start}
    todo = [start]
    while todo:
        n = todo.pop()
        for m in edges.get(n, []):
            if m not in seen:
                seen.add(m)
                todo.append(m)
    return seen


def scan_graph(spec: GraphSpec) -> ScanResult:
    """Semantic checks on a parsed graph document.

    Cycles are reported as warnings only: graphs may legitimately loop while
    their activation expressions keep passing.
    """
    errors: list[GraphValidationIssue] = []
    warnings: list[GraphValidationIssue] = []
    steps = set(list_steps())
    sinks = set(list_sinks())

    if not spec.nodes:
        errors.append(GraphValidationIssue("no_nodes", "nodes", "Graph declares no nodes"))

    ids: set[str] = set()
    for i, n in enumerate(spec.nodes):
        if n.id in ids:
            errors.append(GraphValidationIssue("duplicate_node", f"nodes[{i}].id", f"Duplicate node id: {n.id}"))
        ids.add(n.id)

    edges: Dict[str, List[str]] = {}
    for i, n in enumerate(spec.nodes):
        _check_when(n.when, f"nodes[{i}].when", errors)
        for j, s in enumerate(n.use):
            if s.type not in steps:
                errors.append(GraphValidationIssue("unknown_step", f"nodes[{i}].use[{j}].type", f"Unknown step type: {s.type}"))
                continue
            _check_inputs(getattr(get_step(s.type), "required_inputs", set()), s.inputs, f"nodes[{i}].use[{j}].inputs", errors)
        for j, s in enumerate(n.sinks):
            if s.type not in sinks:
                errors.append(GraphValidationIssue("unknown_sink", f"nodes[{i}].sinks[{j}].type", f"Unknown sink type: {s.type}"))
                continue
            _check_inputs(getattr(get_sink(s.type), "required_inputs", set()), s.inputs, f"nodes[{i}].sinks[{j}].inputs", errors)
        for j, link in enumerate(n.links):
            if link.to not in ids:
                errors.append(GraphValidationIssue("unknown_link_target", f"nodes[{i}].links[{j}].to", f"Link to unknown node: {link.to}"))
                continue
            _check_when(link.when, f"nodes[{i}].links[{j}].when", errors)
            edges.setdefault(n.id, []).append(link.to)

    entry = spec.graph.entry
    if entry is not None and entry not in ids:
        errors.append(GraphValidationIssue("unknown_entry", "graph.entry", f"Entry node not declared: {entry}"))

    for cyc in _find_cycles(edges):
        warnings.append(GraphValidationIssue("cycle_detected", "nodes", "Cycle: " + " -> ".join(cyc)))

    if spec.nodes and (entry is None or entry in ids):
        start = entry or spec.nodes[0].id
        reach = _reachable(edges, start)
        for i, n in enumerate(spec.nodes):
            if n.id not in reach:
                warnings.append(GraphValidationIssue("unreachable_node", f"nodes[{i}]", f"Node {n.id} is not reachable from {start}"))

    return ScanResult(errors=errors, warnings=warnings)


def parse_graph_spec(raw: Any) -> tuple[GraphSpec | None, list[GraphValidationIssue]]:
    try:
        return GraphSpec.model_validate(raw), []
    except ValidationError as e:
        issues = [
            GraphValidationIssue("schema_error", ".".join(str(p) for p in err.get("loc", ())), err.get("msg", ""))
            for err in e.errors()
        ]
        return None, issues


def validate_graph_yaml(graph_yaml: str, *, settings: Settings | None = None) -> Dict[str, Any]:
    """Validate a graph document (schema + semantic) without building it.

    Returns a report dict: ``{ok, graph_yaml, errors, warnings}``.
    """
    settings = settings or load_settings()
    load_all_plugins(settings=settings)

    report: Dict[str, Any] = {"ok": False, "graph_yaml": graph_yaml, "errors": [], "warnings": []}
    try:
        raw = yaml.safe_load(Path(graph_yaml).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        report["errors"] = [GraphValidationIssue("yaml_error", "", str(e)).as_dict()]
        return report

    spec, issues = parse_graph_spec(raw)
    if spec is None:
        report["errors"] = [i.as_dict() for i in issues]
        return report

    scan = scan_graph(spec)
    report["errors"] = [i.as_dict() for i in scan.errors]
    report["warnings"] = [i.as_dict() for i in scan.warnings]
    report["ok"] = not scan.errors
    if scan.warnings:
        log.debug("graph %s validated with %d warning(s)", spec.graph.id, len(scan.warnings))
    return report
