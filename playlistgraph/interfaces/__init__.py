"""Public interface definitions for playlist sources and graph sinks.

Concrete adapters live in ``playlistgraph/providers/`` and are chosen by
the CLI at startup; services only depend on these abstract classes, so
tests can inject fakes without touching the filesystem or a database.

CONCRETE PROVIDER MAP:
    Interface        →  Concrete implementations
    ─────────────────────────────────────────────────────────────
    IPlaylistSource  →  JsonPlaylistSource
    IGraphSink       →  EdgeListSink, GraphMLSink, Neo4jSink
"""

from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.interfaces.playlist_source import IPlaylistSource

__all__ = [
    "IGraphSink",
    "IPlaylistSource",
]
