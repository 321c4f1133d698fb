"""Shared pytest fixtures for the playlistgraph test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Playlist document builders
# ---------------------------------------------------------------------------


def make_track(artist: str, track: str | None = None) -> dict[str, Any]:
    """Build a track entry with MPD-style URIs."""
    track = track or f"{artist}-song"
    return {
        "pos": 0,
        "artist_name": artist.title(),
        "track_uri": f"spotify:track:{track}",
        "artist_uri": f"spotify:artist:{artist}",
        "track_name": track,
        "duration_ms": 200000,
    }


def make_playlist(pid: int, artists: list[str]) -> dict[str, Any]:
    """Build a playlist whose tracks are one per artist, in order."""
    return {
        "name": f"playlist {pid}",
        "pid": pid,
        "num_tracks": len(artists),
        "tracks": [make_track(artist) for artist in artists],
    }


def make_document(playlists: list[dict[str, Any]], slice_range: str | None = None) -> dict[str, Any]:
    """Wrap playlists in a slice document."""
    document: dict[str, Any] = {}
    if slice_range is not None:
        document["info"] = {"generated_on": "2017-12-03", "slice": slice_range, "version": "v1"}
    document["playlists"] = playlists
    return document


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Return an empty directory for input files."""
    directory = tmp_path / "data"
    directory.mkdir()
    return directory


@pytest.fixture
def write_json(data_dir: Path) -> Callable[[str, Any], Path]:
    """Return a helper that writes a JSON value into the data directory."""

    def _write(name: str, content: Any) -> Path:
        path = data_dir / name
        path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_slice(write_json: Callable[[str, Any], Path]) -> Callable[..., Path]:
    """Return a helper that writes a playlist slice from lists of artist names."""

    def _write(name: str, playlists: list[list[str]], first_pid: int = 0) -> Path:
        records = [make_playlist(first_pid + i, artists) for i, artists in enumerate(playlists)]
        slice_range = f"{first_pid}-{first_pid + len(records) - 1}" if records else None
        return write_json(name, make_document(records, slice_range))

    return _write


@pytest.fixture
def two_slices(write_slice: Callable[..., Path]) -> list[Path]:
    """Two slice files: A, B, C in the first; B, C, D in the second."""
    return [
        write_slice("mpd.slice.0-1.json", [["a", "b", "c"], ["b", "c"]]),
        write_slice("mpd.slice.2-3.json", [["b", "c", "d"], ["a"]], first_pid=2),
    ]
