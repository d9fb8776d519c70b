from __future__ import annotations

import abc
from typing import Any, Awaitable, Dict

from nodeflow.core.pipeline import Next


class Step(abc.ABC):
    """Middleware built from a graph document.

    Instances are plain processors: ``await step(ctx, next)``.
    """

    required_inputs: set[str] = set()

    def __init__(self, step_id: str, inputs: Dict[str, Any]):
        self.id = step_id
        self.inputs = inputs

    def validate(self):
        missing = [k for k in self.required_inputs if k not in self.inputs]
        if missing:
            raise ValueError(f"Step {self.id} missing inputs: {missing}")

    @abc.abstractmethod
    async def __call__(self, ctx: Any, next: Next) -> None:
        raise NotImplementedError


class Sink(abc.ABC):
    required_inputs: set[str] = set()

    def __init__(self, sink_id: str, inputs: Dict[str, Any]):
        self.id = sink_id
        self.inputs = inputs

    def validate(self):
        missing = [k for k in self.required_inputs if k not in self.inputs]
        if missing:
            raise ValueError(f"Sink {self.id} missing inputs: {missing}")

    @abc.abstractmethod
    def __call__(self, ctx: Any) -> None | Awaitable[None]:
        raise NotImplementedError
