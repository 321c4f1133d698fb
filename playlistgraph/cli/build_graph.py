# =============================================================================
# playlistgraph/cli/build_graph.py — Playlist Co-occurrence Graph Builder CLI
# =============================================================================
#
# Builds a co-occurrence graph from a directory of playlist JSON files
# (Million Playlist Dataset slices or anything shaped like them) and writes
# it as GraphML, a tab-separated edge list, or straight into Neo4j.
#
# Workflow:
#   1. List *.json files in --directory (non-recursive, sorted by name)
#   2. Keep files --start..--end (inclusive indices, default: first two)
#   3. Stream every playlist, pair up its tracks/artists, accumulate weights
#   4. Write the graph to the chosen output and print a weight summary
#
# Exit codes: 0 on success, 1 on any argument, input, or output error.
# =============================================================================

"""CLI for building playlist co-occurrence graphs.

Usage::

    # Artist graph of the first two files, written as GraphML
    python -m playlistgraph.cli.build_graph --directory ./data

    # Track graph of files 0..9 as a weighted edge list
    python -m playlistgraph.cli.build_graph --directory ./data --start 0 --end 9 \\
        --type track --format edgelist --weights --output out/tracks.tsv

    # Rebuild the Neo4j database from the whole corpus
    python -m playlistgraph.cli.build_graph --format neo4j --rebuild --end 999
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from playlistgraph.config.loader import DEFAULT_CONFIG_PATH, load_settings
from playlistgraph.config.settings import Settings
from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.models.playlist import NodeType
from playlistgraph.providers.sink.edge_list_sink import EdgeListSink
from playlistgraph.providers.sink.graphml_sink import GraphMLSink
from playlistgraph.providers.sink.neo4j_sink import NODE_LABELS, Neo4jSink
from playlistgraph.providers.source.json_playlist_source import JsonPlaylistSource
from playlistgraph.services.file_discovery import discover_input_files, select_file_range
from playlistgraph.services.graph_build_service import GraphBuildService
from playlistgraph.services.identifier_extractor import IdentifierExtractor
from playlistgraph.services.summary_service import format_summary
from playlistgraph.utils.errors import InvalidArgumentError, PlaylistGraphError
from playlistgraph.utils.logging import LOG_LEVELS, configure_logging, get_logger

FORMATS = ("graphml", "edgelist", "neo4j")
DEFAULT_EDGE_LIST_OUTPUT = "edge_list.txt"


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that exits with status 1 on bad arguments."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the graph builder CLI."""
    parser = _ArgumentParser(
        prog="python -m playlistgraph.cli.build_graph",
        description=(
            "Build a weighted co-occurrence graph from playlist JSON files: two "
            "tracks (or artists) are connected when they share a playlist, "
            "weighted by the number of playlists they share."
        ),
    )
    parser.add_argument(
        "--directory",
        default=None,
        help="Directory scanned for *.json input files (default: data_dir setting, ./data)",
    )
    parser.add_argument(
        "--start",
        type=int,
        default=0,
        help="Index of the first input file, in sorted order (default: 0)",
    )
    parser.add_argument(
        "--end",
        type=int,
        default=None,
        help="Index of the last input file, inclusive (default: start + 1)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help=(
            "Output path; parent directories are created "
            "(default: <type>_graph.graphml, or edge_list.txt for --format edgelist)"
        ),
    )
    parser.add_argument(
        "--type",
        dest="node_type",
        choices=[t.value for t in NodeType],
        default=NodeType.ARTIST.value,
        help="Node identity: one node per track or per artist (default: artist)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=FORMATS,
        default="graphml",
        help="Output format (default: graphml)",
    )
    parser.add_argument(
        "--weights",
        action="store_true",
        help="Add a weight column to the edge list",
    )
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Write the edge list per playlist as it streams (no deduplication, no weights)",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Delete everything in the Neo4j database before writing",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows per Neo4j write transaction (default: db_batch_size setting, 1000)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Processes used to aggregate files in parallel (default: 1)",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help="Number of heaviest edges in the summary (default: top_k setting, 10)",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML settings file; environment variables override it (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level (default: log_level setting, INFO)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide progress bars",
    )
    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _default_output(node_type: NodeType, output_format: str) -> str:
    if output_format == "edgelist":
        return DEFAULT_EDGE_LIST_OUTPUT
    return f"{node_type.value}_graph.graphml"


def _validate_args(args: argparse.Namespace) -> None:
    """Reject flag combinations argparse cannot express."""
    if (args.weights or args.legacy) and args.output_format != "edgelist":
        raise InvalidArgumentError("--weights and --legacy require --format edgelist")
    if args.weights and args.legacy:
        raise InvalidArgumentError("--legacy edge lists carry no weights")
    if args.rebuild and args.output_format != "neo4j":
        raise InvalidArgumentError("--rebuild requires --format neo4j")
    if args.batch_size is not None and args.batch_size < 1:
        raise InvalidArgumentError("--batch-size must be at least 1")
    if args.workers < 1:
        raise InvalidArgumentError("--workers must be at least 1")
    if args.top_k is not None and args.top_k < 1:
        raise InvalidArgumentError("--top-k must be at least 1")


def _build_sink(args: argparse.Namespace, settings: Settings, node_type: NodeType) -> IGraphSink:
    """Construct the sink selected by --format."""
    if args.output_format == "neo4j":
        return Neo4jSink(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
            node_label=NODE_LABELS[node_type],
            batch_size=args.batch_size or settings.db_batch_size,
            rebuild=args.rebuild,
        )

    output = args.output or _default_output(node_type, args.output_format)
    if args.output_format == "edgelist":
        return EdgeListSink(output, streaming=args.legacy, include_weights=args.weights)
    return GraphMLSink(output)


def _describe_output(sink: IGraphSink) -> str:
    path = getattr(sink, "path", None)
    return str(path) if path is not None else sink.name


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit status.

    Argument errors exit from inside argparse (status 1, usage on stderr);
    ``--help`` exits with status 0.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except PlaylistGraphError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    configure_logging(args.log_level or settings.log_level)
    logger = get_logger(__name__)

    node_type = NodeType(args.node_type)

    try:
        _validate_args(args)
        directory = args.directory or settings.data_dir
        files = select_file_range(discover_input_files(directory), args.start, args.end)
        sink = _build_sink(args, settings, node_type)
        service = GraphBuildService(
            source=JsonPlaylistSource(),
            extractor=IdentifierExtractor(node_type, settings.field_for_node_type(node_type)),
            sinks=[sink],
            max_edge_weight=settings.max_edge_weight,
            top_k=args.top_k or settings.top_k,
            show_progress=not args.no_progress,
            workers=args.workers,
        )
    except InvalidArgumentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    print(f"Building {node_type.value} graph from {len(files)} file(s) in {directory}")
    start = time.monotonic()
    try:
        _, result = service.build(files)
    except PlaylistGraphError as exc:
        logger.error("graph_build_failed", error=str(exc), error_type=type(exc).__name__)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    elapsed = time.monotonic() - start

    print()
    print(format_summary(result.summary))
    print()
    print(f"Playlists processed: {result.playlists_processed:,}")
    if result.failed_sink_files:
        print(f"Files with rejected writes: {len(result.failed_sink_files)}")
        for path in result.failed_sink_files:
            print(f"  - {Path(path).name}")
    print(f"Output: {_describe_output(sink)}")
    print(f"Processing complete in {elapsed:.1f}s.")
    return 0


def main() -> None:
    """Console-script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
