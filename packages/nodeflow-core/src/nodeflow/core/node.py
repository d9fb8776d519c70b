from __future__ import annotations

import inspect
import logging
import time
import uuid
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, NamedTuple, Tuple, TypeVar, Union

from nodeflow.core.activation import Activation, as_activation
from nodeflow.core.activation import should_activate as activates
from nodeflow.core.concurrency import spawn
from nodeflow.core.exception import PipelineError
from nodeflow.core.observability import active_settings, dur_ms, log_event
from nodeflow.core.pipeline import Processor, pipe

T = TypeVar("T")

Sink = Callable[[Any], Union[None, Awaitable[None]]]

log = logging.getLogger("nodeflow.core.node")


class Link(NamedTuple):
    node: "Node"
    activation: Activation


def new_node_id() -> str:
    return str(uuid.uuid4())


class Node(Generic[T]):
    """A unit of execution in a dataflow graph.

    When touched, a node checks its activation, runs its middleware stack over the
    context and, if the stack completed, touches its linked nodes and calls its
    sinks with the same context. Linked nodes and sinks run in the background:
    ``touch`` neither waits for them nor reports their failures.

    Args:
        id: Node identifier. A random UUID is used when omitted.
        should_activate: ``None``/``True`` to always activate, or a callable
            ``(node, ctx) -> bool``.
    """

    def __init__(self, id: str | None = None, should_activate: Any = None) -> None:
        self._id = id if id is not None else new_node_id()
        self.metadata: Dict[str, Any] = {}
        self._should_activate: Activation = as_activation(should_activate)
        self._stack: list[Processor] = []
        self._outputs: Dict[str, Link] = {}
        # dict keys keep insertion order and give set semantics
        self._sinks: Dict[Sink, None] = {}

    def __repr__(self) -> str:
        return f"Node(id={self._id!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def should_activate(self) -> Activation:
        return self._should_activate

    @should_activate.setter
    def should_activate(self, value: Any) -> None:
        self._should_activate = as_activation(value)

    @property
    def stack(self) -> Tuple[Processor, ...]:
        return tuple(self._stack)

    @property
    def outputs(self) -> Mapping[str, Link]:
        return MappingProxyType(self._outputs)

    @property
    def sinks(self) -> Tuple[Sink, ...]:
        return tuple(self._sinks)

    # ------------------------------------------------------------------
    # configuration

    def use(self, *processors: Processor) -> "Node[T]":
        """Append processors to the middleware stack; they run in the order added."""
        self._stack.extend(processors)
        return self

    def clear_stack(self) -> "Node[T]":
        self._stack.clear()
        return self

    def link(self, node: "Node[T]", should_activate: Any = None) -> "Node[T]":
        """Link ``node`` as an output. Re-linking the same node replaces its activation."""
        self._outputs[node.id] = Link(node, as_activation(should_activate))
        return self

    def unlink(self, node: Union["Node[T]", str]) -> "Node[T]":
        key = node if isinstance(node, str) else node.id
        self._outputs.pop(key, None)
        return self

    def unlink_all(self) -> "Node[T]":
        self._outputs.clear()
        return self

    def sink(self, sink: Sink) -> "Node[T]":
        self._sinks[sink] = None
        return self

    def unsink(self, sink: Sink) -> "Node[T]":
        self._sinks.pop(sink, None)
        return self

    def clear_sinks(self) -> "Node[T]":
        self._sinks.clear()
        return self

    # ------------------------------------------------------------------
    # execution

    async def touch(self, ctx: T, should_activate: Any = None) -> None:
        """Touch the node with ``ctx``.

        ``should_activate`` overrides the node's own activation for this call only.

        Raises:
            PipelineError: a middleware processor failed. Outputs and sinks are
                not touched in that case.
        """
        activation = self._should_activate if should_activate is None else as_activation(should_activate)
        if not activates(activation, self, ctx):
            log_event(log, level=logging.DEBUG, event="node_skipped", node_id=self._id)
            return

        stack = tuple(self._stack)
        t0 = time.perf_counter()
        try:
            await pipe(*stack)(ctx)
        except PipelineError as e:
            log_event(log, level=logging.DEBUG, event="node_failed", node_id=self._id, error=repr(e.cause))
            raise

        # snapshot before fan-out
        targets = [
            link.node for link in list(self._outputs.values())
            if activates(link.activation, link.node, ctx)
        ]
        sinks = list(self._sinks)

        for target in targets:
            spawn(target.touch(ctx), name=f"nodeflow:{self._id}->{target.id}", on_error=self._fanout_error(target.id))
        for fn in sinks:
            spawn(_call_sink(fn, ctx), name=f"nodeflow:{self._id}:sink", on_error=self._sink_error(fn))

        log_event(
            log,
            level=logging.DEBUG,
            event="node_touched",
            node_id=self._id,
            steps=len(stack),
            outputs=len(targets),
            sinks=len(sinks),
            duration_ms=dur_ms(t0, time.perf_counter()),
        )

    def _fanout_error(self, target_id: str) -> Callable[[BaseException], None]:
        def handler(exc: BaseException) -> None:
            if active_settings().log_fanout_errors:
                log_event(
                    log,
                    level=logging.WARNING,
                    event="fanout_failed",
                    node_id=self._id,
                    target_id=target_id,
                    error=repr(exc),
                    exc_info=exc,
                )
        return handler

    def _sink_error(self, fn: Sink) -> Callable[[BaseException], None]:
        def handler(exc: BaseException) -> None:
            if active_settings().log_fanout_errors:
                log_event(
                    log,
                    level=logging.WARNING,
                    event="sink_failed",
                    node_id=self._id,
                    sink=getattr(fn, "__qualname__", repr(fn)),
                    error=repr(exc),
                    exc_info=exc,
                )
        return handler

    def explore(self, wrap: bool = True) -> Dict[str, Any]:
        """Return the tree of ids reachable through outputs. Does not terminate on cycles."""
        tree: Dict[str, Any] = {}
        for link in self._outputs.values():
            tree[link.node.id] = link.node.explore(False)
        return {self._id: tree} if wrap else tree


async def _call_sink(fn: Sink, ctx: Any) -> None:
    result = fn(ctx)
    if inspect.isawaitable(result):
        await result
