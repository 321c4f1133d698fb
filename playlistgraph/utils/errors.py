"""Custom exception hierarchy for playlistgraph.

All application exceptions inherit from :class:`PlaylistGraphError`, which
carries an optional ``source_name`` so error handlers can identify which
input file or output sink (e.g. "mpd.slice.0-999.json", "neo4j") caused
the failure.

The hierarchy is organized by build stage:

    PlaylistGraphError  (base -- catch-all for any playlistgraph error)
    +-- MalformedInputError   (input file is not a playlist document)
    +-- MissingFieldError     (a track lacks the configured identifier field)
    +-- InvalidArgumentError  (bad CLI flag values, raised before processing)
    +-- ConfigurationError    (invalid settings / config file)
    +-- SinkWriteError        (filesystem or database rejected a write)
    +-- WeightOverflowError   (an edge weight crossed the configured ceiling)

Callers decide the policy per type: the build service tolerates
SinkWriteError from database sinks for the rest of a file, while
everything else ends the run with a non-zero exit.
"""


class PlaylistGraphError(Exception):
    """Base exception for all playlistgraph errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``source_name`` identifying the file or sink that triggered the
    error.  ``__str__`` prefixes the source name in brackets, e.g.
    ``[data/slice.json] top-level "playlists" key not found``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        source_name: str | None = None,
    ) -> None:
        self._message = message
        self._source_name = source_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def __reduce__(self):
        # Keep source_name when errors cross a process-pool boundary.
        return (self.__class__, (self._message, self._source_name))

    def __str__(self) -> str:
        if self._source_name:
            return f"[{self._source_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class MalformedInputError(PlaylistGraphError):
    """Raised when an input file is not valid JSON or not a playlist document.

    Covers a missing top-level ``playlists`` key, a ``playlists`` value
    that is not an array, and playlist entries that cannot be decoded
    (missing ``tracks`` array, non-object tracks).  Aborts the file.
    """

    def __init__(
        self,
        message: str = "Malformed playlist input",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class MissingFieldError(PlaylistGraphError):
    """Raised when a track entry lacks the field for the configured node type."""

    def __init__(
        self,
        message: str = "Track entry is missing a required field",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class InvalidArgumentError(PlaylistGraphError):
    """Raised for invalid command-line values (directory, index range, flags)."""

    def __init__(
        self,
        message: str = "Invalid argument",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class ConfigurationError(PlaylistGraphError):
    """Raised when configuration is invalid or unreadable at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


# ---------------------------------------------------------------------------
# Output / aggregation errors
# ---------------------------------------------------------------------------

class SinkWriteError(PlaylistGraphError):
    """Raised when a sink's underlying storage rejects a write.

    Database sinks mark themselves as failure-tolerant; the build service
    logs the error and resumes that sink with the next input file.  File
    sinks are not tolerant and the run aborts.
    """

    def __init__(
        self,
        message: str = "Sink write failed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class WeightOverflowError(PlaylistGraphError):
    """Raised when an edge weight would exceed the configured maximum."""

    def __init__(
        self,
        message: str = "Edge weight overflow",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
