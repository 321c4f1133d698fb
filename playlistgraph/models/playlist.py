"""Playlist input models.

A Playlist is the transient unit of work: the source decodes one from the
input stream, the identifier extractor turns it into node identifiers, and
it is discarded.  Track entries stay plain dicts because the identifier
field names are configuration, not schema.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Which identifier of a track entry becomes a graph node."""

    TRACK = "track"     # one node per track URI
    ARTIST = "artist"   # one node per artist URI


class Playlist(BaseModel):
    """One entry of a file's top-level ``playlists`` array.

    Only ``tracks`` is required.  Other playlist fields (``pid``, ``name``,
    ``num_followers``, ...) are kept as extras for logging but never read
    by the graph builder.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    # Informational only; any JSON value is accepted.
    pid: Any = None
    name: Any = None
    # Each track is a JSON object; the extractor reads the configured
    # identifier field (track_uri / artist_uri by default).
    tracks: list[dict[str, Any]] = Field(...)

    def __len__(self) -> int:
        return len(self.tracks)
