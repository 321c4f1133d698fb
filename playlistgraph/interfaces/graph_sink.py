"""Abstract base class for graph sinks.

A sink consumes graph updates: nodes, and edges with a weight or weight
increment.  Two kinds exist:

- **streaming** sinks (``streaming = True``) receive one update per
  playlist as the build progresses, with an increment of 1 per edge;
- **final** sinks receive the finished aggregate once, after every input
  file has been processed, with each edge's total weight.

Sinks are context managers; ``open()`` performs any destructive setup
(exactly once, before the first write) and ``close()`` flushes and
releases the underlying storage on every exit path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType


class IGraphSink(ABC):
    """Contract for graph outputs (files, graph databases)."""

    #: Human-readable name used in logs and error messages.
    name: str = "sink"
    #: Receives per-playlist updates instead of the final aggregate.
    streaming: bool = False
    #: A SinkWriteError from this sink suspends it for the rest of the
    #: current input file instead of aborting the run.
    tolerates_failures: bool = False

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying storage and run one-time setup."""

    @abstractmethod
    def add_node(self, node_id: str) -> None:
        """Accept a node.  Adding the same node twice must not duplicate it."""

    @abstractmethod
    def add_edge(self, source: str, target: str, weight: int = 1) -> None:
        """Accept an edge in canonical orientation.

        For streaming sinks *weight* is an increment to merge into any
        existing edge; for final sinks it is the edge's total weight.
        """

    def flush(self) -> None:
        """Push buffered writes to storage.  No-op for unbuffered sinks."""

    def discard_pending(self) -> int:
        """Drop buffered writes after a failure.  Returns how many were dropped."""
        return 0

    @abstractmethod
    def close(self) -> None:
        """Flush remaining writes and release the underlying storage."""

    def __enter__(self) -> IGraphSink:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
