"""Graph build orchestration: input files -> aggregate -> sinks -> summary.

Data flow for one run::

    files ──► IPlaylistSource ──► IdentifierExtractor ──► CooccurrenceAggregator
                                                              │       │
                                     streaming sinks ◄────────┘       │ (per playlist)
                                     final sinks     ◄────────────────┘ (after last file)

Files are processed one after another, playlists in document order.
Streaming sinks are opened once before the first file, so destructive
setup (clearing a database) happens exactly once, and receive every
playlist's nodes and pair increments as they are ingested.  Final sinks
receive the finished aggregate.

Failure policy:
    - MalformedInputError / MissingFieldError / WeightOverflowError abort
      the run.  Streaming-sink batches flushed for earlier files stay.
    - SinkWriteError from a failure-tolerant sink (Neo4j) is logged, the
      sink's pending batch is dropped, and the sink is skipped for the
      rest of the current file; it resumes with the next file.
    - SinkWriteError from any other sink aborts the run.

With ``workers > 1`` each file is aggregated in its own process and the
partial aggregates are merged in file order.  Streaming sinks need the
per-playlist order of a single process, so they cannot be combined with
workers.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from concurrent.futures import ProcessPoolExecutor
from contextlib import ExitStack, contextmanager
from itertools import repeat
from pathlib import Path

import structlog
from tqdm import tqdm

from playlistgraph.config.settings import MAX_INT64
from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.interfaces.playlist_source import IPlaylistSource
from playlistgraph.models.graph import BuildResult, CanonicalPair
from playlistgraph.services.cooccurrence_aggregator import CooccurrenceAggregator, merge_aggregates
from playlistgraph.services.identifier_extractor import IdentifierExtractor
from playlistgraph.services.summary_service import DEFAULT_TOP_K, summarize
from playlistgraph.utils.errors import InvalidArgumentError, SinkWriteError

logger = structlog.get_logger(logger_name=__name__)


def aggregate_file(
    path: Path,
    source: IPlaylistSource,
    extractor: IdentifierExtractor,
    max_edge_weight: int = MAX_INT64,
) -> CooccurrenceAggregator:
    """Build the partial aggregate of a single file.

    Module-level so a process pool can pickle it.
    """
    aggregator = CooccurrenceAggregator(max_edge_weight=max_edge_weight)
    source_name = str(path)
    for playlist in source.iter_playlists(path):
        aggregator.ingest(extractor.extract(playlist, source_name=source_name))
    logger.info(
        "file_aggregated",
        path=source_name,
        playlists=aggregator.playlist_count,
        nodes=aggregator.node_count,
        edges=aggregator.edge_count,
    )
    return aggregator


@contextmanager
def opened_sink(sink: IGraphSink) -> Iterator[IGraphSink]:
    """Open *sink* and guarantee ``close()`` on every exit path.

    When the run fails, writes still buffered for the failing file are
    dropped instead of flushed.  A failure-tolerant sink that fails its
    final flush is logged rather than allowed to fail the run.
    """
    sink.open()
    try:
        yield sink
    except BaseException:
        sink.discard_pending()
        raise
    finally:
        try:
            sink.close()
        except SinkWriteError as exc:
            if not sink.tolerates_failures:
                raise
            dropped = sink.discard_pending()
            logger.error("sink_close_failed", sink=sink.name, dropped=dropped, error=str(exc))


class GraphBuildService:
    """Runs a co-occurrence graph build over a list of input files.

    Parameters
    ----------
    source:
        Playlist reader for the input files.
    extractor:
        Maps playlists to node identifiers for the chosen node type.
    sinks:
        Outputs; split into streaming and final by their ``streaming`` flag.
    max_edge_weight:
        Ceiling enforced by the aggregator.
    top_k:
        Number of heaviest edges kept in the summary.
    show_progress:
        Display tqdm progress bars on stderr.
    workers:
        Processes used to aggregate files; 1 processes in-line.
    """

    def __init__(
        self,
        source: IPlaylistSource,
        extractor: IdentifierExtractor,
        sinks: Sequence[IGraphSink] = (),
        max_edge_weight: int = MAX_INT64,
        top_k: int = DEFAULT_TOP_K,
        show_progress: bool = True,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            raise InvalidArgumentError("workers must be at least 1")
        self._source = source
        self._extractor = extractor
        self._streaming_sinks = [sink for sink in sinks if sink.streaming]
        self._final_sinks = [sink for sink in sinks if not sink.streaming]
        if workers > 1 and self._streaming_sinks:
            names = ", ".join(sink.name for sink in self._streaming_sinks)
            raise InvalidArgumentError(
                f"streaming sinks ({names}) cannot be combined with workers > 1"
            )
        self._max_edge_weight = max_edge_weight
        self._top_k = top_k
        self._show_progress = show_progress
        self._workers = workers

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, files: Sequence[Path]) -> tuple[CooccurrenceAggregator, BuildResult]:
        """Aggregate *files*, feed every sink, and summarize the result."""
        files = [Path(path) for path in files]
        failed_files: list[str] = []

        logger.info(
            "graph_build_start",
            files=len(files),
            node_type=self._extractor.node_type.value,
            streaming_sinks=[sink.name for sink in self._streaming_sinks],
            final_sinks=[sink.name for sink in self._final_sinks],
            workers=self._workers,
        )

        if self._workers > 1:
            aggregator = self._aggregate_parallel(files)
        else:
            with ExitStack() as stack:
                for sink in self._streaming_sinks:
                    stack.enter_context(opened_sink(sink))
                aggregator = self._aggregate_sequential(files, failed_files)

        for sink in self._final_sinks:
            with opened_sink(sink):
                self._replay(aggregator, sink)

        summary = summarize(aggregator, top_k=self._top_k)
        result = BuildResult(
            files_processed=len(files),
            playlists_processed=aggregator.playlist_count,
            failed_sink_files=failed_files,
            summary=summary,
        )

        logger.info(
            "graph_build_complete",
            files=result.files_processed,
            playlists=result.playlists_processed,
            nodes=summary.node_count,
            edges=summary.edge_count,
            failed_sink_files=len(failed_files),
        )
        return aggregator, result

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def _aggregate_sequential(
        self,
        files: list[Path],
        failed_files: list[str],
    ) -> CooccurrenceAggregator:
        aggregator = CooccurrenceAggregator(max_edge_weight=self._max_edge_weight)

        with tqdm(
            total=len(files),
            desc="Processing files",
            unit="file",
            disable=not self._show_progress,
        ) as files_bar:
            for path in files:
                self._process_file(path, aggregator, failed_files)
                files_bar.update(1)

        return aggregator

    def _process_file(
        self,
        path: Path,
        aggregator: CooccurrenceAggregator,
        failed_files: list[str],
    ) -> None:
        source_name = str(path)
        expected = self._source.read_playlist_count(path)
        # Every streaming sink starts each file active again.
        active = list(self._streaming_sinks)
        ingested = 0

        logger.info("file_processing_start", path=source_name, expected_playlists=expected)

        with tqdm(
            total=expected,
            desc=path.name,
            unit="playlist",
            leave=False,
            disable=not self._show_progress,
        ) as playlists_bar:
            for playlist in self._source.iter_playlists(path):
                identifiers = self._extractor.extract(playlist, source_name=source_name)
                pairs = aggregator.ingest(identifiers)
                if active:
                    active = self._feed(active, identifiers, pairs, source_name, failed_files)
                ingested += 1
                playlists_bar.update(1)

        for sink in list(active):
            try:
                sink.flush()
            except SinkWriteError as exc:
                self._suspend(sink, exc, source_name, failed_files)

        logger.info(
            "file_processing_complete",
            path=source_name,
            playlists=ingested,
            nodes=aggregator.node_count,
            edges=aggregator.edge_count,
        )

    def _feed(
        self,
        active: list[IGraphSink],
        identifiers: list[str],
        pairs: list[CanonicalPair],
        source_name: str,
        failed_files: list[str],
    ) -> list[IGraphSink]:
        """Send one playlist's updates to the active streaming sinks.

        Returns the sinks still active for the rest of the file.
        """
        still_active: list[IGraphSink] = []
        for sink in active:
            try:
                for node_id in dict.fromkeys(identifiers):
                    sink.add_node(node_id)
                for source, target in pairs:
                    sink.add_edge(source, target, 1)
            except SinkWriteError as exc:
                self._suspend(sink, exc, source_name, failed_files)
                continue
            still_active.append(sink)
        return still_active

    @staticmethod
    def _suspend(
        sink: IGraphSink,
        exc: SinkWriteError,
        source_name: str,
        failed_files: list[str],
    ) -> None:
        if not sink.tolerates_failures:
            raise exc
        dropped = sink.discard_pending()
        if source_name not in failed_files:
            failed_files.append(source_name)
        logger.error(
            "sink_suspended_for_file",
            sink=sink.name,
            path=source_name,
            dropped=dropped,
            error=str(exc),
        )

    def _aggregate_parallel(self, files: list[Path]) -> CooccurrenceAggregator:
        with ProcessPoolExecutor(max_workers=self._workers) as executor:
            partials = executor.map(
                aggregate_file,
                files,
                repeat(self._source),
                repeat(self._extractor),
                repeat(self._max_edge_weight),
            )
            # map() yields in submission order, so partials merge in file order.
            return merge_aggregates(
                tqdm(
                    partials,
                    total=len(files),
                    desc="Processing files",
                    unit="file",
                    disable=not self._show_progress,
                ),
                max_edge_weight=self._max_edge_weight,
            )

    # ------------------------------------------------------------------
    # Final sinks
    # ------------------------------------------------------------------

    @staticmethod
    def _replay(aggregator: CooccurrenceAggregator, sink: IGraphSink) -> None:
        for node_id in aggregator.nodes:
            sink.add_node(node_id)
        for (source, target), weight in aggregator.edges.items():
            sink.add_edge(source, target, weight)
        logger.debug("sink_replayed", sink=sink.name, nodes=aggregator.node_count, edges=aggregator.edge_count)
