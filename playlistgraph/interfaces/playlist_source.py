"""Abstract base class for playlist sources.

A source turns one input file into a lazy sequence of Playlist values.
Iteration is restartable per file: calling :meth:`iter_playlists` again
re-opens the file and starts from the first playlist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from playlistgraph.models.playlist import Playlist


class IPlaylistSource(ABC):
    """Contract for streaming playlists out of input files."""

    @abstractmethod
    def iter_playlists(self, path: str | Path) -> Iterator[Playlist]:
        """Yield the playlists of *path* in document order.

        Parameters
        ----------
        path:
            Input file to read.

        Raises
        ------
        MalformedInputError
            The file is not a playlist document.  Raised lazily, from the
            iteration step that discovers the problem; playlists yielded
            before that point have already been consumed by the caller.
        """

    @abstractmethod
    def read_playlist_count(self, path: str | Path) -> int | None:
        """Return the number of playlists declared by the file, if any.

        Used only to size progress bars.  Returns ``None`` when the file
        does not declare a count; never raises for a missing declaration.
        """
