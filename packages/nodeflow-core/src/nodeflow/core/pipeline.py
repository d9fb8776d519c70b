from __future__ import annotations

from collections import deque
from typing import Any, Awaitable, Callable, Optional, Protocol

from nodeflow.core.exception import MiddlewareError, PipelineError

Next = Callable[[], Awaitable[None]]
Processor = Callable[[Any, Next], Awaitable[None]]


class CancelSignal(Protocol):
    """Anything exposing ``is_set()``: asyncio.Event, threading.Event, CancelToken."""

    def is_set(self) -> bool: ...


class CancelToken:
    """Minimal cancellation token for callers that do not want an Event."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def is_set(self) -> bool:
        return self._cancelled


Executor = Callable[[Any, Optional[CancelSignal]], Awaitable[None]]


def pipe(*processors: Processor) -> Executor:
    """Build an executor running ``processors`` as middleware, in order.

    Each processor is awaited as ``processor(ctx, next)`` and decides whether
    the chain continues by awaiting ``next()``. A processor that returns without
    calling ``next()`` ends the chain quietly.

    If a processor raises, the remaining processors are skipped and the executor
    raises a :class:`PipelineError` wrapping a :class:`MiddlewareError` wrapping
    the original error. Both carry the context.

    When ``cancel`` is set, ``next()`` stops invoking processors without raising.
    Processors already running are not interrupted.
    """
    captured = tuple(processors)

    async def execute(ctx: Any, cancel: Optional[CancelSignal] = None) -> None:
        # private cursor per invocation
        stack = deque(captured)
        failures: list[PipelineError] = []

        async def next_() -> None:
            if cancel is not None and cancel.is_set():
                return
            if not stack:
                return
            processor = stack.popleft()
            try:
                await processor(ctx, next_)
            except Exception as e:
                if failures and e is failures[0]:
                    # already wrapped by a deeper next() of this invocation
                    raise
                err = PipelineError(ctx, [MiddlewareError(ctx, [e])])
                failures.append(err)
                raise err from e

        await next_()

    return execute
