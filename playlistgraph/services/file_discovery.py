"""Input file discovery and index-range selection."""

from __future__ import annotations

from pathlib import Path

from playlistgraph.utils.errors import InvalidArgumentError

INPUT_SUFFIX = ".json"


def discover_input_files(directory: str | Path) -> list[Path]:
    """List the ``*.json`` files directly inside *directory*, sorted by name.

    Subdirectories are not descended into.

    Raises
    ------
    InvalidArgumentError
        *directory* does not exist or is not a directory.
    """
    root = Path(directory)
    if not root.is_dir():
        raise InvalidArgumentError(f"not a directory: {directory}")
    return sorted(
        (path for path in root.iterdir() if path.is_file() and path.suffix == INPUT_SUFFIX),
        key=lambda path: path.name,
    )


def select_file_range(files: list[Path], start: int = 0, end: int | None = None) -> list[Path]:
    """Return ``files[start..end]`` (inclusive on both ends).

    With *end* omitted the range covers the first two files from *start*,
    or fewer when the list is shorter.

    Raises
    ------
    InvalidArgumentError
        No files, negative or reversed bounds, or an explicit *end* past
        the last file.
    """
    if not files:
        raise InvalidArgumentError(f"no {INPUT_SUFFIX} input files found")
    if end is None:
        end = max(start, min(start + 1, len(files) - 1))
    if start < 0 or end < start:
        raise InvalidArgumentError(f"invalid file index range {start}..{end}")
    if end >= len(files):
        raise InvalidArgumentError(
            f"file index range {start}..{end} is out of bounds for {len(files)} files "
            f"(valid indices 0..{len(files) - 1})"
        )
    return files[start : end + 1]
