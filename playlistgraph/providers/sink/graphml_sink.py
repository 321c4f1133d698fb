"""GraphML writer for the aggregated co-occurrence graph.

Output layout::

    <?xml version="1.0" encoding="UTF-8"?>
    <graphml xmlns="http://graphml.graphdrawing.org/xmlns" ...>
      <key id="weight" for="edge" attr.name="weight" attr.type="int"/>
      <graph id="G" edgedefault="undirected">
        <node id="spotify:artist:A"/>
        <edge id="e0" source="spotify:artist:A" target="spotify:artist:B">
          <data key="weight">3</data>
        </edge>
      </graph>
    </graphml>

Elements are written as they arrive, so the document is never held in
memory.  Identifiers are escaped for all five XML reserved characters.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TextIO
from xml.sax.saxutils import escape

import structlog

from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.utils.errors import SinkWriteError

logger = structlog.get_logger(logger_name=__name__)

GRAPHML_NAMESPACE = "http://graphml.graphdrawing.org/xmlns"

_HEADER = f"""\
<?xml version="1.0" encoding="UTF-8"?>
<graphml xmlns="{GRAPHML_NAMESPACE}"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xsi:schemaLocation="{GRAPHML_NAMESPACE}
    {GRAPHML_NAMESPACE}/1.0/graphml.xsd">
  <key id="weight" for="edge" attr.name="weight" attr.type="int"/>
  <graph id="G" edgedefault="undirected">
"""

_FOOTER = """\
  </graph>
</graphml>
"""

# saxutils.escape covers &, < and >; quotes are added for attribute values.
_ATTR_ENTITIES = {'"': "&quot;", "'": "&apos;"}

# Characters outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def escape_xml(value: str) -> str:
    """Escape ``&``, ``"``, ``'``, ``<`` and ``>``.

    Raises ValueError for characters XML 1.0 cannot represent at all
    (most C0 control characters, lone surrogates).
    """
    bad = _INVALID_XML_CHARS.search(value)
    if bad is not None:
        raise ValueError(f"character {bad.group()!r} cannot appear in XML: {value!r}")
    return escape(value, _ATTR_ENTITIES)


class GraphMLSink(IGraphSink):
    """Writes the final graph as a GraphML document."""

    name = "graphml"
    streaming = False

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._fh: TextIO | None = None
        self._node_count = 0
        self._edge_count = 0

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "w", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            raise SinkWriteError(f"cannot open GraphML file: {exc}", source_name=str(self._path)) from exc
        self._node_count = 0
        self._edge_count = 0
        self._write(_HEADER)

    def add_node(self, node_id: str) -> None:
        self._write(f'    <node id="{self._attr(node_id)}"/>\n')
        self._node_count += 1

    def add_edge(self, source: str, target: str, weight: int = 1) -> None:
        self._write(
            f'    <edge id="e{self._edge_count}" source="{self._attr(source)}" '
            f'target="{self._attr(target)}">\n'
            f'      <data key="weight">{int(weight)}</data>\n'
            f"    </edge>\n"
        )
        self._edge_count += 1

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._write(_FOOTER)
        finally:
            fh, self._fh = self._fh, None
            try:
                fh.close()
            except OSError as exc:
                raise SinkWriteError(f"close failed: {exc}", source_name=str(self._path)) from exc
        logger.info(
            "graphml_written",
            path=str(self._path),
            nodes=self._node_count,
            edges=self._edge_count,
        )

    def _attr(self, value: str) -> str:
        try:
            return escape_xml(value)
        except ValueError as exc:
            raise SinkWriteError(str(exc), source_name=str(self._path)) from exc

    def _write(self, text: str) -> None:
        if self._fh is None:
            raise SinkWriteError("GraphML file is not open", source_name=str(self._path))
        try:
            self._fh.write(text)
        except OSError as exc:
            raise SinkWriteError(f"write failed: {exc}", source_name=str(self._path)) from exc
