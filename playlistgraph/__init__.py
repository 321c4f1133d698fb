"""playlistgraph -- weighted co-occurrence graphs from playlist collections."""

__version__ = "0.1.0"
