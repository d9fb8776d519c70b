"""Centralized customized exceptions for nodeflow.

All project-specific exceptions live in this module (the architecture guard
rejects exception classes defined anywhere else).

Internal code should prefer explicit imports:

    from nodeflow.core.exception import PipelineError
"""

from __future__ import annotations

from typing import Any, Sequence

__all__ = [
    "MiddlewareError",
    "PipelineError",
    "SpecError",
    "ExpressionError",
]


class MiddlewareError(ExceptionGroup):
    """Raised when a single middleware step fails.

    Wraps exactly one step error together with the context that was being
    processed when it failed.
    """

    def __new__(cls, ctx: Any, errors: Sequence[Exception], message: str = "Failed to execute processor"):
        obj = super().__new__(cls, message, list(errors))
        obj.ctx = ctx
        return obj

    def __init__(self, ctx: Any, errors: Sequence[Exception], message: str = "Failed to execute processor"):
        super().__init__(message, list(errors))

    def derive(self, excs):
        return MiddlewareError(self.ctx, excs, self.message)


class PipelineError(ExceptionGroup):
    """Raised by a pipeline executor (and by ``Node.touch``) when its chain fails.

    Wraps exactly one :class:`MiddlewareError`; ``ctx`` is the in-flight context.
    """

    def __new__(cls, ctx: Any, errors: Sequence[Exception], message: str = "Failed to execute pipeline"):
        obj = super().__new__(cls, message, list(errors))
        obj.ctx = ctx
        return obj

    def __init__(self, ctx: Any, errors: Sequence[Exception], message: str = "Failed to execute pipeline"):
        super().__init__(message, list(errors))

    def derive(self, excs):
        return PipelineError(self.ctx, excs, self.message)

    @property
    def cause(self) -> BaseException:
        """The original error raised by the failing step."""
        inner = self.exceptions[0]
        if isinstance(inner, MiddlewareError):
            return inner.exceptions[0]
        return inner


class SpecError(ValueError):
    """Raised when a graph document is invalid (schema or semantic)."""


class ExpressionError(ValueError):
    """Raised when a ``when`` expression is syntactically invalid or uses unsupported constructs."""
