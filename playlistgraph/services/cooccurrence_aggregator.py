"""Pairwise expansion and aggregation of playlist co-occurrences.

The aggregator owns the Aggregate Graph State of a run:

    nodes  -- every identifier seen, in first-seen order (dict used as an
              ordered set)
    edges  -- canonical pair -> weight, where the canonical pair is
              (smaller id, larger id) so (a, b) and (b, a) share one entry

Each ingested playlist is expanded into all unordered pairs of its
distinct identifiers and merged into the edge map.  The raw pairwise
expansion is never kept beyond the playlist being ingested.

Duplicate policy: identifiers are deduplicated per playlist before
pairing.  A pair's weight is therefore the number of playlists that
contain both members, however many times either member repeats inside a
single playlist.  Deduplication also removes every self-pair.

Partial aggregates built independently (e.g. one per input file) combine
with :meth:`CooccurrenceAggregator.merge`: node sets are unioned and
matching pairs have their weights summed.  Both operations are
associative and commutative, so partials may be merged in any order or
grouping.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, KeysView, Mapping, Sequence
from functools import reduce
from types import MappingProxyType

import structlog

from playlistgraph.config.settings import MAX_INT64
from playlistgraph.models.graph import CanonicalPair, WeightedEdge, canonical_pair
from playlistgraph.utils.errors import WeightOverflowError

logger = structlog.get_logger(logger_name=__name__)


class CooccurrenceAggregator:
    """Accumulates a weighted, undirected co-occurrence graph.

    Usage::

        aggregator = CooccurrenceAggregator()
        for identifiers in playlists:
            aggregator.ingest(identifiers)
        aggregator.weight("A", "B")

    Parameters
    ----------
    max_edge_weight:
        Ceiling for a single edge weight.  Python integers never wrap, but
        downstream stores do (Neo4j integers are signed 64-bit), so a
        weight past the ceiling raises WeightOverflowError instead of
        being written out corrupted.
    """

    def __init__(self, max_edge_weight: int = MAX_INT64) -> None:
        if max_edge_weight < 1:
            raise ValueError("max_edge_weight must be at least 1")
        self._max_edge_weight = max_edge_weight
        self._nodes: dict[str, None] = {}
        self._edges: dict[CanonicalPair, int] = {}
        self._playlist_count = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> KeysView[str]:
        return self._nodes.keys()

    @property
    def edges(self) -> Mapping[CanonicalPair, int]:
        return MappingProxyType(self._edges)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def playlist_count(self) -> int:
        return self._playlist_count

    @property
    def max_edge_weight(self) -> int:
        return self._max_edge_weight

    def weight(self, a: str, b: str) -> int:
        """Weight of the edge between *a* and *b* in either order, 0 if absent."""
        return self._edges.get(canonical_pair(a, b), 0)

    def iter_edges(self) -> Iterator[WeightedEdge]:
        """Yield every edge in first-seen order."""
        for (source, target), weight in self._edges.items():
            yield WeightedEdge(source=source, target=target, weight=weight)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, identifiers: Sequence[str]) -> list[CanonicalPair]:
        """Merge one playlist's co-occurrences into the aggregate.

        Every identifier becomes a node, including those of a playlist too
        short to form a pair.  Returns the canonical pairs this playlist
        contributed, ``k * (k - 1) / 2`` of them for ``k`` distinct
        identifiers; streaming sinks replay them as weight increments.

        Raises
        ------
        WeightOverflowError
            An edge would exceed ``max_edge_weight``.  Increments already
            applied for this playlist are kept; the run is expected to end.
        """
        distinct = list(dict.fromkeys(identifiers))
        self._nodes.update(dict.fromkeys(distinct))

        edges = self._edges
        ceiling = self._max_edge_weight
        contributed: list[CanonicalPair] = []
        count = len(distinct)

        for i in range(count):
            a = distinct[i]
            for j in range(i + 1, count):
                b = distinct[j]
                key = (a, b) if a < b else (b, a)
                weight = edges.get(key, 0) + 1
                if weight > ceiling:
                    raise WeightOverflowError(
                        f"weight of {key[0]} -- {key[1]} exceeds {ceiling}"
                    )
                edges[key] = weight
                contributed.append(key)

        self._playlist_count += 1
        return contributed

    # ------------------------------------------------------------------
    # Merging partial aggregates
    # ------------------------------------------------------------------

    def merge(self, other: CooccurrenceAggregator) -> CooccurrenceAggregator:
        """Fold *other* into this aggregate in place and return ``self``.

        Nodes missing here are appended in *other*'s first-seen order;
        weights of matching pairs are summed under the overflow ceiling.
        """
        self._nodes.update(other._nodes)

        edges = self._edges
        ceiling = self._max_edge_weight
        for key, weight in other._edges.items():
            total = edges.get(key, 0) + weight
            if total > ceiling:
                raise WeightOverflowError(
                    f"weight of {key[0]} -- {key[1]} exceeds {ceiling} while merging"
                )
            edges[key] = total

        self._playlist_count += other._playlist_count
        return self

    def __eq__(self, other: object) -> bool:
        # Equality ignores insertion order: same node set, same weight per pair.
        if not isinstance(other, CooccurrenceAggregator):
            return NotImplemented
        return self._nodes.keys() == other._nodes.keys() and self._edges == other._edges

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"CooccurrenceAggregator(nodes={self.node_count}, "
            f"edges={self.edge_count}, playlists={self.playlist_count})"
        )


def merge_aggregates(
    parts: Iterable[CooccurrenceAggregator],
    max_edge_weight: int = MAX_INT64,
) -> CooccurrenceAggregator:
    """Combine partial aggregates into a new one, leaving the parts untouched."""
    merged = reduce(
        lambda acc, part: acc.merge(part),
        parts,
        CooccurrenceAggregator(max_edge_weight=max_edge_weight),
    )
    logger.debug(
        "aggregates_merged",
        nodes=merged.node_count,
        edges=merged.edge_count,
        playlists=merged.playlist_count,
    )
    return merged
