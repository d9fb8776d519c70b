from __future__ import annotations

import json
import logging
import sys
from typing import Any

from nodeflow.core.registry.steps import register_sink
from nodeflow.core.steps.base import Sink

log = logging.getLogger("nodeflow.core.builtins.sinks")


@register_sink("log")
class LogSink(Sink):
    def __call__(self, ctx: Any) -> None:
        level = getattr(logging, str(self.inputs.get("level", "INFO")).upper(), logging.INFO)
        log.log(level, "sink=%s ctx=%r", self.id, ctx)


@register_sink("print")
class PrintSink(Sink):
    """Write the context to stdout as one JSON line (``default=str`` for odd values)."""

    def __call__(self, ctx: Any) -> None:
        payload = ctx if isinstance(ctx, (dict, list)) else getattr(ctx, "__dict__", repr(ctx))
        prefix = self.inputs.get("prefix")
        line = json.dumps(payload, ensure_ascii=False, default=str)
        sys.stdout.write(f"{prefix} {line}\n" if prefix else f"{line}\n")
