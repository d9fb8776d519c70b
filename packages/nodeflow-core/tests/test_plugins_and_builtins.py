from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from nodeflow.core.builtins.sinks import PrintSink
from nodeflow.core.builtins.steps import Increment, SetValues, Sleep
from nodeflow.core.concurrency import drain
from nodeflow.core.graph import load_graph
from nodeflow.core.node import Node
from nodeflow.core.plugins import load_plugins_from_paths
from nodeflow.core.registry.steps import list_steps
from nodeflow.core.runtime.settings import Settings


def test_plugin_path_registers_steps(tmp_path: Path):
    plugins = tmp_path / "plugins"
    plugins.mkdir()
    (plugins / "shout.py").write_text(
        textwrap.dedent(
            """
            from nodeflow.core.api import Step, register_step

            @register_step("_plugin_shout")
            class Shout(Step):
                async def __call__(self, ctx, next):
                    ctx["msg"] = ctx["msg"].upper()
                    await next()
            """
        ),
        encoding="utf-8",
    )
    (plugins / "_private.py").write_text("raise RuntimeError('must not load')\n", encoding="utf-8")

    graph_yaml = tmp_path / "g.yaml"
    graph_yaml.write_text(
        "graph: {id: p}\nnodes:\n  - id: a\n    use: [{type: _plugin_shout}]\n",
        encoding="utf-8",
    )
    graph = load_graph(graph_yaml, settings=Settings(plugin_paths=[str(plugins)]))
    assert "_plugin_shout" in list_steps()
    assert graph.nodes["a"].stack


def test_missing_plugin_path_strict_and_lenient(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_plugins_from_paths([str(tmp_path / "nope")], strict=True)
    load_plugins_from_paths([str(tmp_path / "nope")], strict=False)


def test_broken_plugin_file_strict(tmp_path: Path):
    plugins = tmp_path / "broken"
    plugins.mkdir()
    (plugins / "bad.py").write_text("raise RuntimeError('bad plugin')\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="failed to load"):
        load_plugins_from_paths([str(plugins)], strict=True)


@pytest.mark.asyncio
async def test_builtin_steps_work_on_attribute_contexts():
    class Ctx:
        n = 1

    ctx = Ctx()
    node = Node(id="A").use(
        Increment("inc", {"key": "n", "by": 2}),
        SetValues("set", {"values": {"done": True}}),
        Sleep("nap", {"seconds": 0}),
    )
    await node.touch(ctx)
    assert ctx.n == 3
    assert ctx.done is True


@pytest.mark.asyncio
async def test_set_requires_a_mapping():
    from nodeflow.core.exception import PipelineError

    node = Node(id="A").use(SetValues("set", {"values": [1, 2]}))
    with pytest.raises(PipelineError):
        await node.touch({})


@pytest.mark.asyncio
async def test_print_sink_writes_json_line(capsys):
    node = Node(id="A").sink(PrintSink("p", {"prefix": "ctx:"}))
    await node.touch({"n": 1})
    await drain(timeout=1)
    out = capsys.readouterr().out.strip()
    assert out.startswith("ctx: ")
    assert json.loads(out[len("ctx: "):]) == {"n": 1}
