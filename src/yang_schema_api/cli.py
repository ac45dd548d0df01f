"""
CLI commands for parsing YANG documents.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .coordinator import ParseCoordinator, load_parser_config
from .diagnostics import DiagnosticReporter


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _read_files(paths):
    files = []
    for path in paths:
        files.append({"name": Path(path).name, "content": Path(path).read_text(encoding="utf-8")})
    return files


def _coordinator(**overrides):
    config = load_parser_config()
    config.cache_results = False
    for key, value in overrides.items():
        setattr(config, key, value)
    return ParseCoordinator(config)


def _print_result(result):
    marker = "✓" if result.valid else "✗"
    module = result.metadata.module or "(no module)"
    print(f"{marker} {result.filename}: {module} [{result.parser_used}]")
    for diag in result.errors:
        print(f"    {diag.severity}: line {diag.line}: {diag.message}")


def cmd_parse(args):
    """Parse a single document command."""
    setup_logging(args.verbose)

    overrides = {"enable_primary": False} if args.fallback_only else {}
    coordinator = _coordinator(**overrides)
    path = Path(args.file)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"✗ Cannot read {path}: {e}")
        return 1

    result = coordinator.parse_document(content, path.name)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
        if result.modules:
            for node in result.modules[0].iter_nodes()[1:]:
                print(f"    {node.type} {node.name}")
    return 0 if result.valid else 1


def cmd_batch(args):
    """Parse several documents command."""
    setup_logging(args.verbose)

    try:
        files = _read_files(args.files)
    except OSError as e:
        print(f"✗ Cannot read input: {e}")
        return 1

    coordinator = _coordinator(max_workers=args.workers)
    batch = coordinator.parse_batch(files)
    if args.json:
        print(json.dumps(batch.to_dict(), indent=2))
    else:
        for result in batch.files:
            _print_result(result)
        summary = batch.summary
        counts = DiagnosticReporter.summarize(
            diag for result in batch.files for diag in result.errors
        )
        print(
            f"{summary['validModules']}/{summary['totalModules']} valid, "
            f"{counts['error']} error(s), {counts['warning']} warning(s)"
        )
    return 0 if batch.summary["validModules"] == batch.summary["totalModules"] else 1


def cmd_graph(args):
    """Print the dependency graph of several documents."""
    setup_logging(args.verbose)

    try:
        files = _read_files(args.files)
    except OSError as e:
        print(f"✗ Cannot read input: {e}")
        return 1

    coordinator = _coordinator(include_edges=args.includes)
    batch = coordinator.parse_batch(files)
    if args.json:
        print(json.dumps(batch.graph.to_dict(), indent=2))
    else:
        for edge in batch.graph.edges:
            print(f"{edge.source} -> {edge.target} ({edge.kind})")
        linked = {edge.source for edge in batch.graph.edges} | {
            edge.target for edge in batch.graph.edges
        }
        for node_id in batch.graph.node_ids():
            if node_id not in linked:
                print(f"{node_id}")
    return 0 if batch.summary["validModules"] == batch.summary["totalModules"] else 1


def cmd_serve(args):
    """Start the HTTP API command."""
    setup_logging(args.verbose)

    from .run_server import main as run_server

    run_server(port=args.port)
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="YANG schema parsing CLI",
        prog="yang-schema"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse one YANG document and report diagnostics"
    )
    parse_parser.add_argument("file", help="Path to a .yang file")
    parse_parser.add_argument(
        "--fallback-only",
        action="store_true",
        help="Skip pyang and use the line-oriented fallback parser"
    )
    parse_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parse_parser.set_defaults(func=cmd_parse)

    # Batch command
    batch_parser = subparsers.add_parser(
        "batch",
        help="Parse several documents and summarize"
    )
    batch_parser.add_argument("files", nargs="+", help="Paths to .yang files")
    batch_parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker threads (default: 1)"
    )
    batch_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    batch_parser.set_defaults(func=cmd_batch)

    # Graph command
    graph_parser = subparsers.add_parser(
        "graph",
        help="Print the import dependency graph of several documents"
    )
    graph_parser.add_argument("files", nargs="+", help="Paths to .yang files")
    graph_parser.add_argument(
        "--includes",
        action="store_true",
        help="Also add include edges for submodules"
    )
    graph_parser.add_argument("--json", action="store_true", help="Print the graph as JSON")
    graph_parser.set_defaults(func=cmd_graph)

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API"
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listening port (default: $PORT or 8000)"
    )
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
