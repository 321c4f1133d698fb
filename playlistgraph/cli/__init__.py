"""Command-line tools for playlistgraph.

- ``python -m playlistgraph.cli.build_graph`` (also ``python -m
  playlistgraph.cli`` and the ``playlistgraph`` console script) -- build a
  co-occurrence graph from playlist JSON files.
"""
