"""Public, stable API surface for nodeflow.

If you're writing plugins or embedding nodeflow into your own codebase,
import from **`nodeflow.core.api`**.

Everything outside this package is considered internal and may change without
notice, even in minor releases.
"""

from __future__ import annotations

# Activation
from nodeflow.core.activation import ALWAYS, Activation, Always, Conditional, as_activation, should_activate
# Background propagation
from nodeflow.core.concurrency import drain, pending
# Common exceptions
from nodeflow.core.exception import ExpressionError, MiddlewareError, PipelineError, SpecError
from nodeflow.core.expressions import compile_when
# Graph documents
from nodeflow.core.graph import Graph, build_graph, graph_from_dict, load_graph
# Nodes
from nodeflow.core.node import Link, Node
# Pipeline executor
from nodeflow.core.pipeline import CancelToken, Next, Processor, pipe
# Registries (steps/sinks)
from nodeflow.core.registry.steps import get_sink, get_step, list_sinks, list_steps, register_sink, register_step
# Settings
from nodeflow.core.runtime.settings import Settings, load_settings
# Graph specification (Pydantic models)
from nodeflow.core.spec import GraphMetaSpec, GraphSpec, LinkSpec, NodeSpec, SinkRefSpec, StepRefSpec
# Step/sink contracts
from nodeflow.core.steps.base import Sink, Step

__all__ = [
    # nodes
    "Node",
    "Link",
    # pipeline
    "pipe",
    "Processor",
    "Next",
    "CancelToken",
    # activation
    "Activation",
    "Always",
    "Conditional",
    "ALWAYS",
    "as_activation",
    "should_activate",
    "compile_when",
    # background propagation
    "drain",
    "pending",
    # exceptions
    "PipelineError",
    "MiddlewareError",
    "SpecError",
    "ExpressionError",
    # settings
    "Settings",
    "load_settings",
    # spec
    "GraphSpec",
    "GraphMetaSpec",
    "NodeSpec",
    "StepRefSpec",
    "SinkRefSpec",
    "LinkSpec",
    # graph documents
    "Graph",
    "build_graph",
    "graph_from_dict",
    "load_graph",
    # step/sink contracts
    "Step",
    "Sink",
    # registries
    "register_step",
    "get_step",
    "list_steps",
    "register_sink",
    "get_sink",
    "list_sinks",
]
