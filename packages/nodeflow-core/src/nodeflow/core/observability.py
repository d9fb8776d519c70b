from __future__ import annotations

import json
import logging
import time
from typing import Any

from nodeflow.core.runtime.settings import Settings

_DEFAULT_SETTINGS = Settings()
_active: Settings = _DEFAULT_SETTINGS


def active_settings() -> Settings:
    return _active


def configure_logging(settings: Settings) -> None:
    """Install ``settings`` as the active observability config and set up root logging."""
    global _active
    _active = settings
    fmt = '%(asctime)s - (%(threadName)-10s) - %(name)s - %(levelname)s - %(message)s'
    if (settings.log_format or "text").lower() == "json":
        # JSON payload already includes timestamp; keep formatter minimal.
        fmt = "%(message)s"
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=fmt,
    )


def reset() -> None:
    global _active
    _active = _DEFAULT_SETTINGS


def _now_ms() -> int:
    return int(time.time() * 1000)


def dur_ms(t0: float, t1: float) -> int:
    return int((t1 - t0) * 1000)


def log_event(logger: logging.Logger, *, level: int, event: str, exc_info: Any = None, **fields: Any) -> None:
    """Emit an event log.

    - text format: one-liner `event key=value ...`
    - json format: one JSON object per line
    """
    if not logger.isEnabledFor(level):
        return
    if _active.log_format.lower() == "json":
        payload = {"ts_ms": _now_ms(), "event": event, **fields}
        logger.log(level, json.dumps(payload, ensure_ascii=False, default=str), exc_info=exc_info)
        return

    # text
    parts = [event]
    for k, v in fields.items():
        parts.append(f"{k}={v}")
    logger.log(level, " ".join(parts), exc_info=exc_info)
