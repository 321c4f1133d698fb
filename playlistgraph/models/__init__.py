"""playlistgraph domain models -- re-exports all public model classes.

    - playlist.py -- input side: NodeType, Playlist
    - graph.py    -- output side: CanonicalPair, WeightedEdge, WeightSummary,
                     BuildResult
"""

from __future__ import annotations

from playlistgraph.models.graph import (
    BuildResult,
    CanonicalPair,
    WeightedEdge,
    WeightSummary,
    canonical_pair,
)
from playlistgraph.models.playlist import NodeType, Playlist

__all__ = [
    "BuildResult",
    "CanonicalPair",
    "NodeType",
    "Playlist",
    "WeightSummary",
    "WeightedEdge",
    "canonical_pair",
]
