"""Output-side graph models: weighted edges, weight summaries, build results.

The aggregation engine itself keys its edge map on plain
``CanonicalPair`` tuples for speed; these frozen models are the shapes
handed to reporters and returned from a build.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

# (smaller identifier, larger identifier) -- the lookup key of an edge.
CanonicalPair = tuple[str, str]


def canonical_pair(a: str, b: str) -> CanonicalPair:
    """Order two identifiers so (a, b) and (b, a) map to the same key."""
    return (a, b) if a < b else (b, a)


class WeightedEdge(BaseModel):
    """An undirected co-occurrence edge in canonical orientation."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    weight: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_canonical(self) -> WeightedEdge:
        if not self.source < self.target:
            raise ValueError("edge endpoints must be distinct and in canonical order")
        return self

    @property
    def pair(self) -> CanonicalPair:
        return (self.source, self.target)


class WeightSummary(BaseModel):
    """Summary figures over the final edge-weight distribution.

    When the aggregate holds no edges every weight statistic is ``None``
    and :attr:`is_empty` is True; callers report "no edges" instead of
    computing a mean over nothing.
    """

    model_config = ConfigDict(frozen=True)

    node_count: int = 0
    edge_count: int = 0
    min_weight: int | None = None
    max_weight: int | None = None
    mean_weight: float | None = None
    median_weight: float | None = None
    top_edges: list[WeightedEdge] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.edge_count == 0


class BuildResult(BaseModel):
    """Outcome of one graph build run."""

    model_config = ConfigDict(frozen=True)

    files_processed: int = 0
    playlists_processed: int = 0
    # Input files during which a failure-tolerant sink rejected a write.
    failed_sink_files: list[str] = Field(default_factory=list)
    summary: WeightSummary = Field(default_factory=WeightSummary)
