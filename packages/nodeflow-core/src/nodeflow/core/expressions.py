from __future__ import annotations

import ast
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, Callable

from nodeflow.core.exception import ExpressionError

_ALLOWED_AST_NODES = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.Not,
    ast.USub,
    ast.Compare,
    ast.Eq,
    ast.NotEq,
    ast.Gt,
    ast.GtE,
    ast.Lt,
    ast.LtE,
    ast.In,
    ast.NotIn,
    ast.Is,
    ast.IsNot,
    ast.Name,
    ast.Attribute,
    ast.Constant,
    ast.Load,
)

_ALLOWED_NAMES = {"ctx", "node", "True", "False", "None"}


def _to_ns(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return SimpleNamespace(**{str(k): _to_ns(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_ns(x) for x in obj]
    return obj


def _normalize(raw: str) -> str:
    # accept yaml-style lowercase booleans
    norm = f" {raw} "
    for word, repl in (("true", "True"), ("false", "False"), ("null", "None")):
        for left in (" ", "(", "="):
            for right in (" ", ")"):
                norm = norm.replace(f"{left}{word}{right}", f"{left}{repl}{right}")
    return norm.strip()


def parse_when(expr: str) -> ast.Expression:
    """Parse and check a ``when`` expression.

    Supported:
      - ctx.<attr>..., node.id, node.metadata.<key>
      - ==, !=, >, >=, <, <=, in, not in, is, is not
      - and/or/not, unary minus
      - constants, true/false/null literals (case-insensitive)
    """
    raw = (expr or "").strip()
    if not raw:
        raise ExpressionError("Empty when expression")
    try:
        tree = ast.parse(_normalize(raw), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid when expression {raw!r}: {e.msg}") from e
    for n in ast.walk(tree):
        if not isinstance(n, _ALLOWED_AST_NODES):
            raise ExpressionError(f"Unsupported expression in when: {type(n).__name__}")
        if isinstance(n, ast.Name) and n.id not in _ALLOWED_NAMES:
            raise ExpressionError(f"Unsupported name in when: {n.id}")
        if isinstance(n, ast.Attribute) and n.attr.startswith("_"):
            raise ExpressionError(f"Private attribute access is not allowed in when: {n.attr}")
    return tree


def compile_when(expr: str) -> Callable[[Any, Any], bool]:
    """Compile ``expr`` into an activation predicate ``(node, ctx) -> bool``."""
    tree = parse_when(expr)
    code = compile(tree, filename="<when>", mode="eval")

    def predicate(node: Any, ctx: Any) -> bool:
        safe_globals = {"__builtins__": {}}
        safe_locals = {
            "ctx": _to_ns(ctx),
            "node": SimpleNamespace(id=node.id, metadata=_to_ns(node.metadata)),
        }
        return bool(eval(code, safe_globals, safe_locals))

    predicate.__qualname__ = f"when({expr.strip()})"
    return predicate
