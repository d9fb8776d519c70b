"""nodeflow core package.

Public entrypoints:
- nodeflow.core.api: stable API surface for integrations/plugins
- nodeflow.core.Node / nodeflow.core.pipe: the execution primitives

Internal modules may change without notice.
"""

from __future__ import annotations

# Strict architecture enforcement (default ON; set NODEFLOW_STRICT_ARCH=0 to disable).
from nodeflow.core._architecture_guard import assert_architecture as _assert_architecture

_assert_architecture()

# Ensure built-in steps/sinks are registered on import.
from nodeflow.core.builtins import register as _register  # noqa: F401, E402

from nodeflow.core.exception import MiddlewareError, PipelineError  # noqa: E402
from nodeflow.core.node import Node  # noqa: E402
from nodeflow.core.pipeline import CancelToken, pipe  # noqa: E402

__all__ = ["Node", "pipe", "CancelToken", "PipelineError", "MiddlewareError"]
