from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from nodeflow.core.node import Node

ActivateFn = Callable[["Node", Any], bool]


@dataclass(frozen=True)
class Always:
    """Activation that always passes; no predicate is ever invoked."""

    def __repr__(self) -> str:
        return "ALWAYS"


@dataclass(frozen=True)
class Conditional:
    """Activation gated by ``fn(node, ctx)``."""

    fn: ActivateFn


Activation = Union[Always, Conditional]

ALWAYS = Always()


def as_activation(value: Any) -> Activation:
    """Normalize user input into an :data:`Activation`.

    ``None`` and ``True`` mean "always". Callables become :class:`Conditional`.
    """
    if value is None or value is True:
        return ALWAYS
    if isinstance(value, (Always, Conditional)):
        return value
    if callable(value):
        return Conditional(value)
    raise TypeError(f"Activation must be None, True, or a callable (node, ctx) -> bool; got {value!r}")


def should_activate(activation: Activation | None, node: "Node", ctx: Any) -> bool:
    # Shared by node activation and link activation.
    if activation is None or isinstance(activation, Always):
        return True
    return bool(activation.fn(node, ctx))
