import argparse
import asyncio
import json
import sys

import yaml

from nodeflow.core.concurrency import drain
from nodeflow.core.exception import PipelineError, SpecError
from nodeflow.core.graph import load_graph
from nodeflow.core.observability import configure_logging
from nodeflow.core.runtime.settings import load_settings
from nodeflow.core.validation import validate_graph_yaml


def _print_tree(tree: dict, indent: int = 0) -> None:
    for key, sub in tree.items():
        print(f"{'  ' * indent}{key}")
        _print_tree(sub, indent + 1)


async def _touch(graph, ctx, *, node_id, timeout) -> int:
    await graph.touch(ctx, node_id=node_id)
    return await drain(timeout=timeout)


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(prog="nodeflow", description="nodeflow-core CLI")
    sp = parser.add_subparsers(dest="cmd", required=True)

    valp = sp.add_parser("validate", help="Validate a graph YAML (schema + semantic)")
    valp.add_argument("--graph-yaml", required=True, help="Path to graph YAML")
    valp.add_argument("--json", action="store_true", help="Output machine-readable JSON")

    expp = sp.add_parser("explore", help="Print the tree of nodes reachable from a node")
    expp.add_argument("--graph-yaml", required=True, help="Path to graph YAML")
    expp.add_argument("--node", default=None, help="Start node (defaults to the graph entry)")
    expp.add_argument("--json", action="store_true", help="Output machine-readable JSON")

    touchp = sp.add_parser("touch", help="Touch a node with a JSON context and print the final context")
    touchp.add_argument("--graph-yaml", required=True, help="Path to graph YAML")
    touchp.add_argument("--node", default=None, help="Node to touch (defaults to the graph entry)")
    touchp.add_argument("--context", default="{}", help="Initial context as a JSON object")
    touchp.add_argument("--timeout", type=float, default=None, help="Seconds to wait for background propagation")

    args = parser.parse_args(argv)
    settings = load_settings()
    configure_logging(settings)

    if args.cmd == "validate":
        report = validate_graph_yaml(args.graph_yaml, settings=settings)
        if args.json:
            print(json.dumps(report, ensure_ascii=False))
        else:
            if report.get("ok"):
                print(f"OK: {report.get('graph_yaml')}")
            else:
                print(f"INVALID: {report.get('graph_yaml')}")
                for e in report.get("errors", []):
                    print(f"- {e.get('loc')}: {e.get('code')} - {e.get('msg')}")
            for w in report.get("warnings", []) or []:
                print(f"! {w.get('loc')}: {w.get('code')} - {w.get('msg')}")
        return 0 if report.get("ok") else 2

    try:
        graph = load_graph(args.graph_yaml, settings=settings)
    except OSError as e:
        print(f"ERROR: cannot read {args.graph_yaml}: {e}", file=sys.stderr)
        return 2
    except (SpecError, yaml.YAMLError) as e:
        print(f"INVALID: {args.graph_yaml}: {e}", file=sys.stderr)
        return 2

    if args.cmd == "explore":
        tree = graph.explore(node_id=args.node)
        if args.json:
            print(json.dumps(tree, ensure_ascii=False))
        else:
            _print_tree(tree)
        return 0

    if args.cmd == "touch":
        try:
            ctx = json.loads(args.context)
        except ValueError as e:
            print(f"--context is not valid JSON: {e}", file=sys.stderr)
            return 2
        if not isinstance(ctx, dict):
            print("--context must be a JSON object", file=sys.stderr)
            return 2
        timeout = args.timeout if args.timeout is not None else settings.drain_timeout_seconds
        try:
            asyncio.run(_touch(graph, ctx, node_id=args.node, timeout=timeout))
        except PipelineError as e:
            print(f"FAILED: {e.cause!r}", file=sys.stderr)
            print(json.dumps(e.ctx, ensure_ascii=False, default=str))
            return 1
        except TimeoutError as e:
            print(f"TIMEOUT: {e}", file=sys.stderr)
            print(json.dumps(ctx, ensure_ascii=False, default=str))
            return 3
        print(json.dumps(ctx, ensure_ascii=False, default=str))
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
