"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from playlistgraph.config.loader import load_settings
from playlistgraph.config.settings import MAX_INT64, Settings
from playlistgraph.utils.errors import ConfigurationError

_ENV_VARS = ("TOP_K", "DATA_DIR", "NEO4J_URI", "NEO4J_PASSWORD", "LOG_LEVEL", "DB_BATCH_SIZE")


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test away from any .env file and with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_yaml(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.data_dir == "./data"
        assert settings.max_edge_weight == MAX_INT64
        assert settings.top_k == 10
        assert settings.neo4j_uri == "bolt://localhost:7687"
        assert settings.db_batch_size == 1000

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEO4J_PASSWORD", "secret")
        assert Settings().neo4j_password == "secret"

    def test_log_level_normalized(self) -> None:
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="log_level must be one of"):
            Settings(log_level="chatty")

    def test_field_for_node_type(self) -> None:
        settings = Settings(track_field="uri", artist_field="artist")

        assert settings.field_for_node_type("track") == "uri"
        assert settings.field_for_node_type("artist") == "artist"


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(str(tmp_path / "absent.yaml"))
        assert settings.top_k == 10

    def test_none_skips_yaml(self) -> None:
        assert load_settings(None).data_dir == "./data"

    def test_yaml_values_applied(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "top_k: 5\ndata_dir: /mnt/mpd\n")

        settings = load_settings(path)

        assert settings.top_k == 5
        assert settings.data_dir == "/mnt/mpd"

    def test_env_wins_over_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOP_K", "7")
        path = _write_yaml(tmp_path, "top_k: 5\nneo4j_uri: bolt://yaml:7687\n")

        settings = load_settings(path)

        assert settings.top_k == 7
        assert settings.neo4j_uri == "bolt://yaml:7687"

    def test_dotenv_wins_over_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("DB_BATCH_SIZE=250\n", encoding="utf-8")
        path = _write_yaml(tmp_path, "db_batch_size: 500\n")

        assert load_settings(path).db_batch_size == 250

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_settings(_write_yaml(tmp_path, "")).top_k == 10

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "top_kk: 5\n")

        with pytest.raises(ConfigurationError, match="unknown configuration keys: top_kk"):
            load_settings(path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(_write_yaml(tmp_path, "- a\n- b\n"))

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(_write_yaml(tmp_path, "top_k: 0\n"))

    def test_invalid_log_level_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "loud")

        with pytest.raises(ConfigurationError, match="log_level"):
            load_settings(None)

    def test_invalid_yaml_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="cannot read config file"):
            load_settings(_write_yaml(tmp_path, "top_k: [1, 2\n"))

    def test_repository_config_loads(self) -> None:
        config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

        settings = load_settings(str(config))

        assert settings.db_batch_size == 1000
        assert settings.artist_field == "artist_uri"
