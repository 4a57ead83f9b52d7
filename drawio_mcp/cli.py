#!/usr/bin/env python3
"""drawio MCP CLI - run the server or inspect diagram files."""

import argparse
import json
import sys

from drawio_core import Graph, file_manager, to_xml, validate_graph, validation_summary

from .config import ServerConfig
from .logging_setup import configure_logging


def _json_out(data) -> int:
    print(json.dumps(data))
    return 0


def cmd_serve(args) -> int:
    config = ServerConfig.from_env()
    configure_logging(config)
    # Imported late: the server module reads its config at import time
    from .server import run
    run()
    return 0


def cmd_new(args) -> int:
    path = file_manager.save(Graph(), args.file_path)
    return _json_out({"status": "created", "file_path": str(path)})


def cmd_info(args) -> int:
    print(to_xml(file_manager.load(args.file_path)))
    return 0


def cmd_stats(args) -> int:
    return _json_out(file_manager.get_diagram_stats(args.file_path).model_dump())


def cmd_validate(args) -> int:
    issues = validate_graph(file_manager.load(args.file_path))
    summary = validation_summary(issues)
    _json_out({"summary": summary, "issues": [i.to_dict() for i in issues]})
    return 0 if summary["valid"] else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drawio-mcp",
        description="MCP server and tools for .drawio.svg diagrams.",
    )
    subparsers = parser.add_subparsers(dest="command")

    p = subparsers.add_parser("serve", help="Run the MCP server over stdio")
    p.set_defaults(func=cmd_serve)

    for name, func, help_text in (
        ("new", cmd_new, "Create an empty diagram file"),
        ("info", cmd_info, "Print a diagram's XML"),
        ("stats", cmd_stats, "Print node and edge counts"),
        ("validate", cmd_validate, "Check a diagram for structural issues"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("file_path", help="Path to the .drawio.svg file")
        p.set_defaults(func=func)

    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        # No subcommand: behave like the plain server entry point
        return cmd_serve(args)
    try:
        return args.func(args)
    except Exception as e:
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
