"""nodeflow strict architecture guard.

Enforced at import time of ``nodeflow.core``:

1) Exception classes live only in ``nodeflow/core/exception.py``.
2) ``*Spec`` classes live only in ``nodeflow/core/spec.py``.
3) Nothing but the CLI itself imports ``nodeflow.core.cli``; the engine never
   depends on its command-line surface.

Set NODEFLOW_STRICT_ARCH=0 to skip the check.
"""

from __future__ import annotations

import ast
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

_SKIP_PARTS = {"__pycache__", ".venv", "venv", "build", "dist", "tests", "test", "demo", "docs"}

_PACKAGE_ROOT = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Violation:
    rule: str
    name: str
    path: Path

    def __str__(self) -> str:
        return f"  - {self.name} in {self.path}"


def _python_files(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob("*.py")):
        if set(path.relative_to(root).parts) & _SKIP_PARTS:
            continue
        yield path


def _dotted(expr: ast.expr) -> str:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return f"{_dotted(expr.value)}.{expr.attr}"
    if isinstance(expr, ast.Subscript):
        return _dotted(expr.value)
    return ""


def _looks_like_exception(cls: ast.ClassDef) -> bool:
    for base in cls.bases:
        last = _dotted(base).rsplit(".", 1)[-1]
        if last in {"BaseException", "Exception", "ExceptionGroup", "BaseExceptionGroup"}:
            return True
        if last.endswith(("Error", "Exception")):
            return True
    return False


def _imports_cli(tree: ast.AST) -> bool:
    for n in ast.walk(tree):
        if isinstance(n, ast.Import) and any(a.name == "nodeflow.core.cli" for a in n.names):
            return True
        if isinstance(n, ast.ImportFrom):
            if n.module == "nodeflow.core.cli":
                return True
            if n.module == "nodeflow.core" and any(a.name == "cli" for a in n.names):
                return True
    return False


def find_violations(root: Path = _PACKAGE_ROOT) -> list[Violation]:
    exception_file = (root / "exception.py").resolve()
    spec_file = (root / "spec.py").resolve()
    cli_file = (root / "cli.py").resolve()

    found: list[Violation] = []
    for path in _python_files(root):
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except (OSError, UnicodeDecodeError, SyntaxError) as e:
            raise RuntimeError(f"[nodeflow strict-arch] Cannot parse source file: {path}") from e

        resolved = path.resolve()
        for n in ast.walk(tree):
            if not isinstance(n, ast.ClassDef):
                continue
            if resolved != exception_file and _looks_like_exception(n):
                found.append(Violation("exceptions", n.name, path))
            if resolved != spec_file and n.name.endswith("Spec"):
                found.append(Violation("specs", n.name, path))
        if resolved != cli_file and _imports_cli(tree):
            found.append(Violation("cli", "nodeflow.core.cli", path))
    return found


_FIXES = {
    "exceptions": "move these exception classes into nodeflow/core/exception.py",
    "specs": "move these Spec classes into nodeflow/core/spec.py",
    "cli": "the engine must not import the CLI; move shared code out of nodeflow/core/cli.py",
}


def assert_architecture() -> None:
    if os.getenv("NODEFLOW_STRICT_ARCH", "1") == "0":
        return
    violations = find_violations()
    if not violations:
        return

    lines = ["nodeflow strict architecture check failed:"]
    for rule, fix in _FIXES.items():
        hits = [v for v in violations if v.rule == rule]
        if not hits:
            continue
        lines.append("")
        lines.append(f"RULE {rule}:")
        lines.extend(str(v) for v in hits)
        lines.append(f"Fix: {fix}.")
    raise RuntimeError("\n".join(lines))
