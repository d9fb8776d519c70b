from __future__ import annotations

import asyncio
import logging
from collections.abc import MutableMapping
from typing import Any

from nodeflow.core.pipeline import Next
from nodeflow.core.registry.steps import register_step
from nodeflow.core.steps.base import Step

log = logging.getLogger("nodeflow.core.builtins.steps")


def get_value(ctx: Any, key: str, default: Any = None) -> Any:
    if isinstance(ctx, MutableMapping):
        return ctx.get(key, default)
    return getattr(ctx, key, default)


def set_value(ctx: Any, key: str, value: Any) -> None:
    if isinstance(ctx, MutableMapping):
        ctx[key] = value
    else:
        setattr(ctx, key, value)


@register_step("set")
class SetValues(Step):
    """Assign fixed values into the context, then continue.

    Inputs:
      - values: mapping of key -> value
    """

    required_inputs = {"values"}

    async def __call__(self, ctx: Any, next: Next) -> None:
        values = self.inputs["values"]
        if not isinstance(values, dict):
            raise ValueError("set expects 'values' to be a mapping")
        for k, v in values.items():
            set_value(ctx, str(k), v)
        await next()


@register_step("increment")
class Increment(Step):
    """Add ``by`` (default 1) to a numeric key, then continue."""

    required_inputs = {"key"}

    async def __call__(self, ctx: Any, next: Next) -> None:
        key = str(self.inputs["key"])
        by = self.inputs.get("by", 1)
        set_value(ctx, key, (get_value(ctx, key, 0) or 0) + by)
        await next()


@register_step("log")
class LogContext(Step):
    async def __call__(self, ctx: Any, next: Next) -> None:
        level = getattr(logging, str(self.inputs.get("level", "INFO")).upper(), logging.INFO)
        log.log(level, "step=%s ctx=%r", self.id, ctx)
        await next()


@register_step("sleep")
class Sleep(Step):
    required_inputs = {"seconds"}

    async def __call__(self, ctx: Any, next: Next) -> None:
        await asyncio.sleep(float(self.inputs["seconds"]))
        await next()


@register_step("halt")
class Halt(Step):
    """Stop the chain here. Later steps do not run; outputs and sinks still fire."""

    async def __call__(self, ctx: Any, next: Next) -> None:
        return None


@register_step("fail")
class Fail(Step):
    async def __call__(self, ctx: Any, next: Next) -> None:
        raise RuntimeError(str(self.inputs.get("message", f"step {self.id} failed")))
