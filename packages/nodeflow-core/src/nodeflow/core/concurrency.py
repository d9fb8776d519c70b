from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional, Set

log = logging.getLogger("nodeflow.core.concurrency")

# The event loop only keeps weak references to tasks; fire-and-forget work is
# parked here until it finishes.
_BACKGROUND: Set[asyncio.Task] = set()


def spawn(
    coro: Coroutine[Any, Any, Any],
    *,
    name: str | None = None,
    on_error: Optional[Callable[[BaseException], None]] = None,
) -> asyncio.Task:
    """Launch ``coro`` as a background task nobody awaits.

    The task's exception (if any) is retrieved in a done callback and handed to
    ``on_error``; it is never re-raised anywhere.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _BACKGROUND.add(task)

    def _done(t: asyncio.Task) -> None:
        _BACKGROUND.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is None or on_error is None:
            return
        try:
            on_error(exc)
        except Exception:
            log.warning("background error handler failed", exc_info=True)

    task.add_done_callback(_done)
    return task


def pending() -> Set[asyncio.Task]:
    return {t for t in _BACKGROUND if not t.done()}


async def drain(timeout: float | None = None) -> int:
    """Wait for background tasks, including ones spawned while waiting.

    Returns how many tasks were awaited. Task errors are not raised here.
    Raises TimeoutError if work is still pending when ``timeout`` elapses.
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    current = asyncio.current_task()
    seen: Set[asyncio.Task] = set()

    while True:
        batch = {t for t in _BACKGROUND if t is not current and t.get_loop() is loop and not t.done()}
        if not batch:
            # let done callbacks of the last batch run
            await asyncio.sleep(0)
            if not any(t is not current and t.get_loop() is loop and not t.done() for t in _BACKGROUND):
                return len(seen)
            continue
        seen |= batch
        remaining = None if deadline is None else deadline - loop.time()
        if remaining is not None and remaining <= 0:
            raise TimeoutError(f"{len(batch)} background task(s) still running")
        _, still = await asyncio.wait(batch, timeout=remaining)
        if still:
            raise TimeoutError(f"{len(still)} background task(s) still running")
