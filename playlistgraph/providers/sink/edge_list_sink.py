"""Tab-separated edge list writer.

One unordered pair per line, no header::

    spotify:track:A<TAB>spotify:track:B

Two modes:

- **aggregated** (default, final sink): each distinct pair is written
  once, in first-seen order, optionally followed by a third weight
  column (``include_weights``).
- **legacy** (``streaming=True``): a line per pair per playlist as the
  build runs.  Weight is ignored and the same pair appears once for every
  playlist it occurs in; consumers that need counts must aggregate the
  lines themselves.
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

import structlog

from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.utils.errors import SinkWriteError

logger = structlog.get_logger(logger_name=__name__)


class EdgeListSink(IGraphSink):
    """Writes edges as tab-separated lines."""

    name = "edgelist"

    def __init__(
        self,
        path: str | Path,
        streaming: bool = False,
        include_weights: bool = False,
    ) -> None:
        if streaming and include_weights:
            raise ValueError("the legacy streaming edge list has no weight column")
        self._path = Path(path)
        self.streaming = streaming
        self._include_weights = include_weights
        self._fh: TextIO | None = None
        self._lines = 0

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "w", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            raise SinkWriteError(f"cannot open edge list: {exc}", source_name=str(self._path)) from exc
        self._lines = 0
        logger.info("edge_list_open", path=str(self._path), streaming=self.streaming)

    def add_node(self, node_id: str) -> None:
        # Nodes are implied by the edges; isolated nodes are not listed.
        return None

    def add_edge(self, source: str, target: str, weight: int = 1) -> None:
        if self._fh is None:
            raise SinkWriteError("edge list is not open", source_name=str(self._path))
        if self._include_weights:
            line = f"{source}\t{target}\t{weight}\n"
        else:
            line = f"{source}\t{target}\n"
        try:
            self._fh.write(line)
        except OSError as exc:
            raise SinkWriteError(f"write failed: {exc}", source_name=str(self._path)) from exc
        self._lines += 1

    def flush(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.flush()
        except OSError as exc:
            raise SinkWriteError(f"flush failed: {exc}", source_name=str(self._path)) from exc

    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as exc:
            raise SinkWriteError(f"close failed: {exc}", source_name=str(self._path)) from exc
        logger.info("edge_list_written", path=str(self._path), lines=self._lines)
