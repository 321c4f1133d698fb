"""Application settings loaded from environment variables via pydantic-settings.

Two sources are read automatically (in priority order):

  1. **Environment variables** -- e.g. ``NEO4J_PASSWORD=secret``
  2. **.env file** -- key=value lines in the working directory

The mapping is automatic: field ``neo4j_password`` maps to env var
``NEO4J_PASSWORD``.  A YAML file can supply further defaults underneath
both, see :func:`playlistgraph.config.loader.load_settings`.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from playlistgraph.utils.logging import LOG_LEVELS

# Neo4j stores integers as signed 64-bit values.
MAX_INT64 = 2**63 - 1


class Settings(BaseSettings):
    """playlistgraph settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Input ===
    data_dir: str = "./data"
    track_field: str = "track_uri"
    artist_field: str = "artist_uri"

    # === Aggregation ===
    max_edge_weight: int = Field(default=MAX_INT64, ge=1)
    top_k: int = Field(default=10, ge=1)

    # === Neo4j ===
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = ""
    neo4j_database: str = "neo4j"
    db_batch_size: int = Field(default=1000, ge=1)

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    def field_for_node_type(self, node_type: str) -> str:
        """Return the track-entry field holding identifiers for *node_type*."""
        if node_type == "track":
            return self.track_field
        return self.artist_field
