"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. Field defaults on :class:`Settings`
  2. config/config.yaml  -- static defaults checked into the repo
  3. .env file           -- local overrides (not committed)
  4. Environment vars    -- set by the job runner at deploy time

Unknown YAML keys are rejected so a typo in the config file fails at
startup instead of silently falling back to a default.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from playlistgraph.config.settings import Settings
from playlistgraph.utils.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/config.yaml"


def load_settings(path: str | None = DEFAULT_CONFIG_PATH) -> Settings:
    """Load YAML defaults and layer environment-based Settings on top.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
            an error; ``None`` skips the YAML layer entirely.

    Returns:
        Fully resolved Settings.

    Raises:
        ConfigurationError: The YAML file is unreadable, not a mapping,
            contains unknown keys, or holds values that fail validation.
    """
    yaml_config = _read_yaml(path) if path else {}

    unknown = sorted(set(yaml_config) - set(Settings.model_fields))
    if unknown:
        raise ConfigurationError(
            f"unknown configuration keys: {', '.join(unknown)}",
            source_name=path,
        )

    try:
        env_settings = Settings()
        # Values coming from the environment or .env are in model_fields_set;
        # YAML only fills the remaining fields.
        yaml_layer = {
            key: value
            for key, value in yaml_config.items()
            if key not in env_settings.model_fields_set
        }
        return Settings(**yaml_layer) if yaml_layer else env_settings
    except ValidationError as exc:
        raise ConfigurationError(str(exc), source_name=path) from exc


def _read_yaml(path: str) -> dict:
    config_path = Path(path)
    if not config_path.exists():
        return {}
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot read config file: {exc}", source_name=path) from exc
    if not isinstance(loaded, dict):
        raise ConfigurationError("config file must contain a mapping", source_name=path)
    return loaded
