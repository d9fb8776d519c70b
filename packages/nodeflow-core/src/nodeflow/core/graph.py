"""Assemble nodes from a graph document.

A graph document declares nodes, their middleware (by registered step type),
their links and sinks. Building it yields plain :class:`Node` objects wired
together in memory; nothing is persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from nodeflow.core import builtins as _builtins  # noqa: F401
from nodeflow.core.exception import SpecError
from nodeflow.core.expressions import compile_when
from nodeflow.core.node import Node
from nodeflow.core.plugins import load_all_plugins
from nodeflow.core.registry.steps import get_sink, get_step
from nodeflow.core.runtime.settings import Settings
from nodeflow.core.spec import GraphSpec
from nodeflow.core.validation import parse_graph_spec, scan_graph

log = logging.getLogger("nodeflow.core.graph")


@dataclass
class Graph:
    id: str
    nodes: Dict[str, Node]
    entry: Node
    description: Optional[str] = None

    def node(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise KeyError(f"Unknown node: {node_id}. Known: {sorted(self.nodes)}") from None

    async def touch(self, ctx: Any, *, node_id: str | None = None) -> None:
        target = self.node(node_id) if node_id else self.entry
        await target.touch(ctx)

    def explore(self, *, node_id: str | None = None) -> Dict[str, Any]:
        target = self.node(node_id) if node_id else self.entry
        return target.explore()


def _validated(obj: Any) -> None:
    try:
        obj.validate()
    except ValueError as e:
        raise SpecError(str(e)) from e


def build_graph(spec: GraphSpec) -> Graph:
    scan = scan_graph(spec)
    if scan.errors:
        first = scan.errors[0]
        raise SpecError(f"{first.loc}: {first.msg}")
    for w in scan.warnings:
        log.info("graph=%s %s: %s", spec.graph.id, w.code, w.msg)

    nodes: Dict[str, Node] = {}
    for n in spec.nodes:
        node: Node = Node(id=n.id, should_activate=compile_when(n.when) if n.when else None)
        node.metadata.update(n.metadata)
        if n.description:
            node.metadata.setdefault("description", n.description)
        for idx, ref in enumerate(n.use):
            step_cls = get_step(ref.type)
            step = step_cls(ref.id or f"{n.id}.{ref.type}.{idx}", dict(ref.inputs))
            _validated(step)
            node.use(step)
        for idx, ref in enumerate(n.sinks):
            sink_cls = get_sink(ref.type)
            sink = sink_cls(ref.id or f"{n.id}.{ref.type}.{idx}", dict(ref.inputs))
            _validated(sink)
            node.sink(sink)
        nodes[n.id] = node

    for n in spec.nodes:
        for link in n.links:
            nodes[n.id].link(nodes[link.to], compile_when(link.when) if link.when else None)

    entry_id = spec.graph.entry or (spec.nodes[0].id if spec.nodes else None)
    if entry_id is None:
        raise SpecError("Graph has no nodes")
    return Graph(id=spec.graph.id, nodes=nodes, entry=nodes[entry_id], description=spec.graph.description)


def load_graph(graph_yaml: str | Path, *, settings: Settings | None = None) -> Graph:
    """Load, validate and build a graph document from a YAML file.

    Plugins configured in ``settings`` are loaded first so their step and sink
    types resolve.
    """
    if settings is not None:
        load_all_plugins(settings=settings)
    with open(graph_yaml, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return graph_from_dict(raw)


def graph_from_dict(raw: Any) -> Graph:
    spec, issues = parse_graph_spec(raw)
    if spec is None:
        first = issues[0]
        raise SpecError(f"{first.loc}: {first.msg}")
    return build_graph(spec)
