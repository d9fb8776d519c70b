from __future__ import annotations

import os
from importlib import import_module
from typing import List

from pydantic import BaseModel, Field


class Settings(BaseModel):
    # Defaults are static. Use load_settings(env=...) to read from an env snapshot.
    log_level: str = "INFO"

    # Observability
    # - log_format: "text" (default) or "json". When json, nodeflow logs emit a single JSON
    #   object per line, suitable for log aggregation.
    log_format: str = "text"

    # Failures inside fire-and-forget fan-out (linked nodes, sinks) never reach the caller.
    # When enabled they are at least logged as warnings.
    log_fanout_errors: bool = True

    # Upper bound used by the CLI when waiting for background propagation to settle.
    drain_timeout_seconds: float = 30.0

    plugin_paths: List[str] = Field(default_factory=list)
    plugin_strict: bool = True

    @classmethod
    def from_env(cls, env: dict[str, str], overrides: dict | None = None) -> "Settings":
        """Build Settings from an explicit env snapshot (does not read os.environ)."""
        def g(key: str, default: str | None = None) -> str | None:
            return env.get(key, default)  # type: ignore[return-value]

        data = {
            "log_level": g("NODEFLOW_LOG_LEVEL", "INFO"),
            "log_format": g("NODEFLOW_LOG_FORMAT", "text"),
            "log_fanout_errors": (g("NODEFLOW_LOG_FANOUT_ERRORS", "true") or "true").lower() == "true",
            "drain_timeout_seconds": float(g("NODEFLOW_DRAIN_TIMEOUT", "30") or "30"),
            "plugin_paths": [p for p in (g("NODEFLOW_PLUGIN_PATHS", "") or "").split(",") if p],
            "plugin_strict": (g("NODEFLOW_PLUGIN_STRICT", "true") or "true").lower() == "true",
        }
        if overrides:
            data.update(overrides)
        return cls(**data)


def load_settings(overrides: dict | None = None, *, env: dict[str, str] | None = None) -> Settings:
    """Load settings from (1) env snapshot, (2) optional settings module, (3) explicit overrides.

    If env is not provided, we build a snapshot from os.environ.
    """
    env2 = {k: str(v) for k, v in os.environ.items()} if env is None else env
    s = Settings.from_env(env2)
    mod = env2.get("NODEFLOW_SETTINGS_MODULE")
    if mod:
        m = import_module(mod)
        data = getattr(m, "SETTINGS", {})
        if not isinstance(data, dict):
            raise TypeError("NODEFLOW_SETTINGS_MODULE must expose SETTINGS: dict")
        s = s.model_copy(update=data)
    if overrides:
        s = s.model_copy(update=overrides)
    return s
