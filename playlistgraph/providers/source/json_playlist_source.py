"""Streaming JSON playlist source backed by ijson.

Reads files shaped like the Million Playlist Dataset slices::

    {
      "info": {"slice": "0-999", ...},
      "playlists": [
        {"pid": 0, "name": "...", "tracks": [{"track_uri": "...", "artist_uri": "..."}]},
        ...
      ]
    }

ijson emits parse events one token at a time, so memory stays bounded by
the size of a single playlist no matter how large the file is.  Top-level
keys other than ``playlists`` are skipped by the event stream without
being materialized.

A malformed file aborts the whole file: there is no skip-and-continue for
individual undecodable playlists.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import ijson
import structlog
from pydantic import ValidationError

from playlistgraph.interfaces.playlist_source import IPlaylistSource
from playlistgraph.models.playlist import Playlist
from playlistgraph.utils.errors import MalformedInputError

logger = structlog.get_logger(logger_name=__name__)

PLAYLISTS_KEY = "playlists"

_SLICE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_slice(value: Any) -> int | None:
    """Return the playlist count for an inclusive ``"<start>-<end>"`` range.

    >>> parse_slice("0-999")
    1000

    Anything unparseable (wrong type, reversed range) yields ``None``.
    """
    if not isinstance(value, str):
        return None
    match = _SLICE_RE.match(value)
    if match is None:
        return None
    start, end = int(match.group(1)), int(match.group(2))
    if end < start:
        return None
    return end - start + 1


class _DocumentState:
    """What the event watcher has seen of the document's top level."""

    __slots__ = ("saw_playlists", "expect_playlists_value")

    def __init__(self) -> None:
        self.saw_playlists = False
        self.expect_playlists_value = False


class JsonPlaylistSource(IPlaylistSource):
    """Streams Playlist values out of JSON playlist files.

    Parameters
    ----------
    playlists_key:
        Name of the top-level array holding playlists.
    """

    def __init__(self, playlists_key: str = PLAYLISTS_KEY) -> None:
        self._playlists_key = playlists_key

    # ------------------------------------------------------------------
    # Playlist stream
    # ------------------------------------------------------------------

    def iter_playlists(self, path: str | Path) -> Iterator[Playlist]:
        source_name = str(path)
        state = _DocumentState()
        index = -1

        try:
            with open(path, "rb") as fh:
                events = self._watch_events(
                    ijson.parse(fh, use_float=True), state, source_name
                )
                for index, raw in enumerate(
                    ijson.items(events, f"{self._playlists_key}.item")
                ):
                    yield self._decode(raw, index, source_name)
        except ijson.JSONError as exc:
            raise MalformedInputError(
                f"invalid JSON after playlist #{index}: {exc}",
                source_name=source_name,
            ) from exc
        except OSError as exc:
            raise MalformedInputError(
                f"cannot read input file: {exc}", source_name=source_name
            ) from exc

        if not state.saw_playlists:
            raise MalformedInputError(
                f'top-level "{self._playlists_key}" key not found',
                source_name=source_name,
            )

        logger.debug("playlist_stream_complete", path=source_name, playlists=index + 1)

    def _watch_events(
        self,
        events: Iterator[tuple[str, str, Any]],
        state: _DocumentState,
        source_name: str,
    ) -> Iterator[tuple[str, str, Any]]:
        """Pass parse events through, validating the document's top level."""
        first = True
        for prefix, event, value in events:
            if first:
                first = False
                if event != "start_map":
                    raise MalformedInputError(
                        "top level of the document must be a JSON object",
                        source_name=source_name,
                    )
            elif state.expect_playlists_value:
                state.expect_playlists_value = False
                if event != "start_array":
                    raise MalformedInputError(
                        f'"{self._playlists_key}" must be an array, got {event}',
                        source_name=source_name,
                    )
            elif prefix == "" and event == "map_key" and value == self._playlists_key:
                state.saw_playlists = True
                state.expect_playlists_value = True
            yield prefix, event, value

    @staticmethod
    def _decode(raw: Any, index: int, source_name: str) -> Playlist:
        if not isinstance(raw, dict):
            raise MalformedInputError(
                f"playlist #{index} is not a JSON object",
                source_name=source_name,
            )
        try:
            return Playlist.model_validate(raw)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'playlist'}: {err['msg']}"
                for err in exc.errors()
            )
            raise MalformedInputError(
                f"playlist #{index} cannot be decoded ({problems})",
                source_name=source_name,
            ) from exc

    # ------------------------------------------------------------------
    # Progress sizing
    # ------------------------------------------------------------------

    def read_playlist_count(self, path: str | Path) -> int | None:
        """Read ``info.slice`` ahead of the playlists array.

        Stops at the ``playlists`` key, so a file without an info block
        before its playlists costs a few parse events, not a full scan.
        Read errors are left for :meth:`iter_playlists` to report.
        """
        try:
            with open(path, "rb") as fh:
                for prefix, event, value in ijson.parse(fh):
                    if prefix == "info.slice" and event == "string":
                        return parse_slice(value)
                    if prefix == "" and event == "map_key" and value == self._playlists_key:
                        return None
        except (OSError, ijson.JSONError):
            return None
        return None
