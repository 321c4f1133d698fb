"""Maps a playlist's track entries to node identifiers.

One identifier per track entry, in playlist order, duplicates preserved;
deduplication is the aggregator's job.  Extraction is strict: a track
without the configured field fails the playlist with MissingFieldError.
"""

from __future__ import annotations

from playlistgraph.models.playlist import NodeType, Playlist
from playlistgraph.utils.errors import MissingFieldError

DEFAULT_FIELDS: dict[NodeType, str] = {
    NodeType.TRACK: "track_uri",
    NodeType.ARTIST: "artist_uri",
}


class IdentifierExtractor:
    """Extracts track or artist identifiers from playlists.

    Parameters
    ----------
    node_type:
        Which identity scheme the graph uses.
    field_name:
        Track-entry key holding the identifier.  Defaults to
        ``track_uri`` / ``artist_uri`` for the node type.
    """

    def __init__(self, node_type: NodeType, field_name: str | None = None) -> None:
        self._node_type = NodeType(node_type)
        self._field_name = field_name or DEFAULT_FIELDS[self._node_type]

    @property
    def node_type(self) -> NodeType:
        return self._node_type

    @property
    def field_name(self) -> str:
        return self._field_name

    def extract(self, playlist: Playlist, source_name: str | None = None) -> list[str]:
        """Return the identifiers of *playlist*'s tracks, in order.

        Raises
        ------
        MissingFieldError
            A track lacks the configured field, or its value is not a
            non-empty string.
        """
        identifiers: list[str] = []
        for position, track in enumerate(playlist.tracks):
            value = track.get(self._field_name)
            if not isinstance(value, str) or not value:
                where = f"playlist {playlist.pid}" if playlist.pid is not None else "playlist"
                raise MissingFieldError(
                    f'{where}, track #{position}: missing "{self._field_name}"',
                    source_name=source_name,
                )
            identifiers.append(value)
        return identifiers
