"""Load user plugins that register step and sink types.

Plugins come from two places: installed distributions exposing the
``nodeflow.plugins`` entry point group, and ``*.py`` files found under the
configured plugin paths. Files whose name starts with ``_`` are skipped.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from importlib.metadata import entry_points
from pathlib import Path

log = logging.getLogger("nodeflow.core.plugins")

ENTRY_POINT_GROUP = "nodeflow.plugins"

# Files already executed; a second run would register the same types again.
_LOADED_FILES: set[str] = set()


def load_plugins_from_entrypoints(group: str = ENTRY_POINT_GROUP, *, strict: bool = True) -> None:
    try:
        eps = entry_points().select(group=group)
    except Exception as e:
        if strict:
            raise RuntimeError(f"Cannot list step/sink plugins in entry point group {group}: {e}") from e
        log.warning("Cannot list step/sink plugins in group %s; none loaded", group, exc_info=True)
        return
    for ep in eps:
        try:
            obj = ep.load()
            # an entry point is either a register() callable or a module exposing one
            register = obj if callable(obj) else getattr(obj, "register", None)
            if register is not None:
                register()
        except Exception as e:
            if strict:
                raise RuntimeError(f"Step/sink plugin {ep.name} failed to register: {e}") from e
            log.warning("Step/sink plugin %s failed to register; skipped", ep.name, exc_info=True)


def _plugin_files(root: Path):
    for p in sorted(root.rglob("*.py")):
        if not p.name.startswith("_"):
            yield p


def _exec_plugin_file(py: Path) -> None:
    mod_name = "nodeflow_user_plugin_" + "_".join(py.with_suffix("").parts[-4:])
    spec = importlib.util.spec_from_file_location(mod_name, py)
    if spec is None or spec.loader is None:
        raise ImportError(f"no loader for {py}")
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)


def load_plugins_from_paths(paths: list[str], *, strict: bool = True) -> None:
    for raw in paths:
        if not raw:
            continue
        root = Path(raw).expanduser().resolve()
        if not root.exists():
            if strict:
                raise FileNotFoundError(f"Step/sink plugin path not found: {root}")
            log.warning("Step/sink plugin path not found: %s; skipped", root)
            continue
        # plugin files may import helper modules living next to them
        if str(root) not in sys.path:
            sys.path.insert(0, str(root))
        for py in _plugin_files(root):
            if str(py) in _LOADED_FILES:
                continue
            try:
                _exec_plugin_file(py)
            except Exception as e:
                if strict:
                    raise RuntimeError(f"Step/sink plugin file {py} failed to load: {e}") from e
                log.warning("Step/sink plugin file %s failed to load; skipped", py, exc_info=True)
                continue
            _LOADED_FILES.add(str(py))
            log.debug("loaded step/sink plugin file %s", py)


def load_all_plugins(*, settings) -> None:
    load_plugins_from_entrypoints(strict=settings.plugin_strict)
    load_plugins_from_paths(settings.plugin_paths, strict=settings.plugin_strict)
