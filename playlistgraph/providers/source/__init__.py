from playlistgraph.providers.source.json_playlist_source import JsonPlaylistSource, parse_slice

__all__ = ["JsonPlaylistSource", "parse_slice"]
