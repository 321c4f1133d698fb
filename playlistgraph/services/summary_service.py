"""Summary figures over the final co-occurrence graph.

Computes the min / max / mean / median of the edge-weight distribution
and the K heaviest edges.  Ties in the top-K ranking are broken by the
canonical pair's lexical order so repeated runs print the same list.
"""

from __future__ import annotations

import heapq
import statistics
from collections.abc import Iterable

from playlistgraph.models.graph import CanonicalPair, WeightedEdge, WeightSummary
from playlistgraph.services.cooccurrence_aggregator import CooccurrenceAggregator

DEFAULT_TOP_K = 10


def summarize_weights(
    edges: Iterable[tuple[CanonicalPair, int]],
    node_count: int = 0,
    top_k: int = DEFAULT_TOP_K,
) -> WeightSummary:
    """Summarize ``(canonical pair, weight)`` items.

    Returns an empty summary (``is_empty``) when there are no edges.
    """
    items = list(edges)
    if not items:
        return WeightSummary(node_count=node_count)

    weights = [weight for _, weight in items]
    # Highest weight first, then ascending canonical pair.
    heaviest = heapq.nsmallest(top_k, items, key=lambda item: (-item[1], item[0]))

    return WeightSummary(
        node_count=node_count,
        edge_count=len(items),
        min_weight=min(weights),
        max_weight=max(weights),
        mean_weight=statistics.fmean(weights),
        median_weight=float(statistics.median(weights)),
        top_edges=[
            WeightedEdge(source=source, target=target, weight=weight)
            for (source, target), weight in heaviest
        ],
    )


def summarize(aggregator: CooccurrenceAggregator, top_k: int = DEFAULT_TOP_K) -> WeightSummary:
    """Summarize a finished aggregate."""
    return summarize_weights(
        aggregator.edges.items(),
        node_count=aggregator.node_count,
        top_k=top_k,
    )


def format_summary(summary: WeightSummary) -> str:
    """Render *summary* as the plain-text report printed by the CLI."""
    lines = [
        f"Number of nodes: {summary.node_count:,}",
        f"Number of edges: {summary.edge_count:,}",
    ]
    if summary.is_empty:
        lines.append("Edge weights: no edges")
        return "\n".join(lines)

    lines.extend([
        "Edge weights:",
        f"  min:    {summary.min_weight:,}",
        f"  max:    {summary.max_weight:,}",
        f"  mean:   {summary.mean_weight:.2f}",
        f"  median: {summary.median_weight:.1f}",
        f"Top {len(summary.top_edges)} edges by weight:",
    ])
    for rank, edge in enumerate(summary.top_edges, start=1):
        lines.append(f"  {rank:>2}. {edge.source}\t{edge.target}\t{edge.weight:,}")
    return "\n".join(lines)
