"""Unit tests for GraphBuildService.

Tests: end-to-end aggregation over files, final-sink replay, streaming
sink increments, per-file suspension of failure-tolerant sinks, abort on
input errors, parallel aggregation.
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from unittest.mock import patch

import pytest
from neo4j.exceptions import ServiceUnavailable

from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.models.playlist import NodeType
from playlistgraph.providers.sink.neo4j_sink import Neo4jSink
from playlistgraph.providers.source.json_playlist_source import JsonPlaylistSource
from playlistgraph.services.graph_build_service import GraphBuildService, aggregate_file, opened_sink
from playlistgraph.services.identifier_extractor import IdentifierExtractor
from playlistgraph.utils.errors import (
    InvalidArgumentError,
    MalformedInputError,
    MissingFieldError,
    SinkWriteError,
    WeightOverflowError,
)
from tests.conftest import make_document, make_playlist


def _artist(name: str) -> str:
    return f"spotify:artist:{name}"


# ─── Recording sink ─────────────────────────────────────────────────


class RecordingSink(IGraphSink):
    """In-memory sink that records every call; optionally fails on a node."""

    def __init__(
        self,
        name: str = "recording",
        streaming: bool = False,
        tolerates_failures: bool = False,
        fail_on_node: str | None = None,
    ) -> None:
        self.name = name
        self.streaming = streaming
        self.tolerates_failures = tolerates_failures
        self.fail_on_node = fail_on_node
        self.nodes: list[str] = []
        self.edges: list[tuple[str, str, int]] = []
        self.opened = 0
        self.closed = 0
        self.flushes = 0
        self.discards = 0

    def open(self) -> None:
        self.opened += 1

    def add_node(self, node_id: str) -> None:
        if node_id == self.fail_on_node:
            raise SinkWriteError("rejected", source_name=self.name)
        self.nodes.append(node_id)

    def add_edge(self, source: str, target: str, weight: int = 1) -> None:
        self.edges.append((source, target, weight))

    def flush(self) -> None:
        self.flushes += 1

    def discard_pending(self) -> int:
        self.discards += 1
        return 0

    def close(self) -> None:
        self.closed += 1

    def weights(self) -> Counter:
        totals: Counter = Counter()
        for source, target, weight in self.edges:
            totals[(source, target)] += weight
        return totals


def _service(sinks=(), node_type: NodeType = NodeType.ARTIST, **kwargs) -> GraphBuildService:
    return GraphBuildService(
        source=JsonPlaylistSource(),
        extractor=IdentifierExtractor(node_type),
        sinks=sinks,
        show_progress=False,
        **kwargs,
    )


# ─── Aggregation ────────────────────────────────────────────────────


class TestBuild:
    def test_aggregates_across_files(self, two_slices: list[Path]) -> None:
        aggregator, result = _service().build(two_slices)

        a, b, c, d = (_artist(x) for x in "abcd")
        assert dict(aggregator.edges) == {
            (a, b): 1,
            (a, c): 1,
            (b, c): 3,
            (b, d): 1,
            (c, d): 1,
        }
        assert result.files_processed == 2
        assert result.playlists_processed == 4
        assert result.failed_sink_files == []

    def test_summary_attached(self, two_slices: list[Path]) -> None:
        _, result = _service(top_k=1).build(two_slices)

        summary = result.summary
        assert summary.node_count == 4
        assert summary.edge_count == 5
        assert summary.max_weight == 3
        assert [edge.pair for edge in summary.top_edges] == [(_artist("b"), _artist("c"))]

    def test_track_node_type(self, two_slices: list[Path]) -> None:
        aggregator, _ = _service(node_type=NodeType.TRACK).build(two_slices)

        assert all(node.startswith("spotify:track:") for node in aggregator.nodes)
        assert aggregator.node_count == 4

    def test_no_files(self) -> None:
        aggregator, result = _service().build([])

        assert aggregator.edge_count == 0
        assert result.summary.is_empty

    def test_files_without_edges(self, write_slice) -> None:
        path = write_slice("solo.json", [["a"], ["b"], []])

        aggregator, result = _service().build([path])

        assert aggregator.node_count == 2
        assert result.summary.is_empty
        assert result.playlists_processed == 3

    def test_aggregate_file(self, two_slices: list[Path]) -> None:
        aggregator = aggregate_file(
            two_slices[0], JsonPlaylistSource(), IdentifierExtractor(NodeType.ARTIST)
        )

        assert aggregator.playlist_count == 2
        assert aggregator.weight(_artist("b"), _artist("c")) == 2


# ─── Sinks ──────────────────────────────────────────────────────────


class TestFinalSinks:
    def test_final_sink_receives_aggregate(self, two_slices: list[Path]) -> None:
        sink = RecordingSink()

        aggregator, _ = _service(sinks=[sink]).build(two_slices)

        assert sink.opened == 1
        assert sink.closed == 1
        assert sink.nodes == list(aggregator.nodes)
        assert {(s, t): w for s, t, w in sink.edges} == dict(aggregator.edges)

    def test_final_sink_untouched_when_input_fails(self, two_slices, write_json) -> None:
        bad = write_json("zz_bad.json", {"info": {}})
        sink = RecordingSink()

        with pytest.raises(MalformedInputError):
            _service(sinks=[sink]).build([*two_slices, bad])

        assert sink.opened == 0


class TestStreamingSinks:
    def test_increments_sum_to_aggregate(self, two_slices: list[Path]) -> None:
        sink = RecordingSink(streaming=True)

        aggregator, _ = _service(sinks=[sink]).build(two_slices)

        assert all(weight == 1 for _, _, weight in sink.edges)
        assert dict(sink.weights()) == dict(aggregator.edges)
        assert set(sink.nodes) == set(aggregator.nodes)

    def test_opened_once_and_flushed_per_file(self, two_slices: list[Path]) -> None:
        sink = RecordingSink(streaming=True)

        _service(sinks=[sink]).build(two_slices)

        assert sink.opened == 1
        assert sink.closed == 1
        assert sink.flushes == 2

    def test_tolerant_sink_suspended_for_rest_of_file(self, write_slice) -> None:
        first = write_slice("0.json", [["a", "b"], ["bad", "c"], ["c", "d"]])
        second = write_slice("1.json", [["e", "f"]], first_pid=3)
        sink = RecordingSink(streaming=True, tolerates_failures=True, fail_on_node=_artist("bad"))

        aggregator, result = _service(sinks=[sink]).build([first, second])

        assert sink.edges == [
            (_artist("a"), _artist("b"), 1),
            (_artist("e"), _artist("f"), 1),
        ]
        assert result.failed_sink_files == [str(first)]
        assert sink.discards == 1
        assert sink.closed == 1
        # The aggregate is unaffected by sink failures.
        assert aggregator.weight(_artist("c"), _artist("d")) == 1
        assert aggregator.weight(_artist("bad"), _artist("c")) == 1

    def test_intolerant_sink_aborts(self, write_slice) -> None:
        path = write_slice("0.json", [["a", "b"], ["bad", "c"]])
        sink = RecordingSink(streaming=True, fail_on_node=_artist("bad"))

        with pytest.raises(SinkWriteError):
            _service(sinks=[sink]).build([path])

        assert sink.closed == 1
        assert sink.discards == 1

    def test_streaming_sink_closed_on_input_error(self, two_slices, write_json) -> None:
        bad = write_json("zz_bad.json", [1, 2, 3])
        sink = RecordingSink(streaming=True)

        with pytest.raises(MalformedInputError):
            _service(sinks=[sink]).build([*two_slices, bad])

        assert sink.closed == 1
        assert sink.discards == 1
        # Updates from the files before the bad one were delivered.
        assert len(sink.edges) > 0

    def test_streaming_and_final_sinks_together(self, two_slices: list[Path]) -> None:
        streaming, final = RecordingSink(streaming=True), RecordingSink()

        aggregator, _ = _service(sinks=[streaming, final]).build(two_slices)

        assert dict(streaming.weights()) == dict(aggregator.edges)
        assert len(final.edges) == aggregator.edge_count


# ─── Failures ───────────────────────────────────────────────────────


class TestBuildFailures:
    def test_missing_field_aborts(self, write_json) -> None:
        playlist = make_playlist(0, ["a", "b"])
        del playlist["tracks"][1]["artist_uri"]
        path = write_json("0.json", make_document([playlist]))

        with pytest.raises(MissingFieldError) as exc_info:
            _service().build([path])

        assert exc_info.value.source_name == str(path)

    def test_weight_overflow_aborts(self, write_slice) -> None:
        path = write_slice("0.json", [["a", "b"], ["a", "b"]])

        with pytest.raises(WeightOverflowError):
            _service(max_edge_weight=1).build([path])

    def test_workers_must_be_positive(self) -> None:
        with pytest.raises(InvalidArgumentError):
            _service(workers=0)

    def test_sink_open_failure_releases_driver(self) -> None:
        with patch("playlistgraph.providers.sink.neo4j_sink.GraphDatabase") as graph_db:
            driver = graph_db.driver.return_value
            session = driver.session.return_value.__enter__.return_value
            session.execute_write.side_effect = ServiceUnavailable("down")

            with pytest.raises(SinkWriteError):
                with opened_sink(Neo4jSink(rebuild=True)):
                    pass

        driver.close.assert_called_once()

    def test_workers_reject_streaming_sinks(self) -> None:
        with pytest.raises(InvalidArgumentError, match="cannot be combined with workers"):
            _service(sinks=[RecordingSink(name="db", streaming=True)], workers=2)


# ─── Parallel aggregation ───────────────────────────────────────────


class TestParallelBuild:
    def test_parallel_matches_sequential(self, two_slices: list[Path]) -> None:
        sequential, _ = _service().build(two_slices)
        sink = RecordingSink()

        parallel, result = _service(sinks=[sink], workers=2).build(two_slices)

        assert parallel == sequential
        assert list(parallel.nodes) == list(sequential.nodes)
        assert result.playlists_processed == 4
        assert len(sink.edges) == sequential.edge_count

    def test_parallel_propagates_input_errors(self, two_slices, write_json) -> None:
        bad = write_json("zz_bad.json", {"playlists": 5})

        with pytest.raises(MalformedInputError) as exc_info:
            _service(workers=2).build([*two_slices, bad])

        assert exc_info.value.source_name == str(bad)
