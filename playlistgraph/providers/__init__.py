"""Concrete adapters for the interfaces in ``playlistgraph.interfaces``.

- ``source/`` -- JsonPlaylistSource (ijson streaming reader)
- ``sink/``   -- EdgeListSink, GraphMLSink, Neo4jSink
"""
