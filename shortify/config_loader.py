#!/usr/bin/env python3
"""
Configuration loading for the Shortify pipeline.

Settings live in a YAML file (``config/shortify.yaml`` by default) under a
``shortify:`` section. Values may reference environment variables with the
``${VAR}`` or ``${VAR:-default}`` syntax. Loaded files are cached; the result
is an immutable ShortifyConfig that is passed explicitly to every stage.
"""

import os
import re
import logging
from dataclasses import dataclass, asdict, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .config_validation import SHORTIFY_SCHEMA, ConfigurationValidator
from .errors import ShortifyError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/shortify.yaml"


class ConfigurationError(ShortifyError):
    """Raised when configuration loading or validation fails."""
    stage = "configuration"


@dataclass(frozen=True)
class ShortifyConfig:
    """All tunables for one pipeline run."""
    frame_rate: int = 60
    scene_threshold: float = 0.01
    min_scene_frames: int = 2
    fallback_interval: float = 2.0
    stills_threshold: float = 0.15
    output_file: str = "_shorted.mp4"
    stills_dir: str = "_stills"
    temp_prefix: str = "temp_shortify_"
    temp_root: Optional[str] = None
    video_codec: str = "libx264"
    pixel_format: str = "yuv420p"
    audio_codec: str = "aac"
    allow_silent_output: bool = False
    probe_workers: int = 3

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ShortifyConfig":
        """
        Build a config from a (validated) mapping, falling back to defaults.

        Raises:
            ConfigurationError: If the mapping fails schema validation
        """
        values = dict(values or {})
        is_valid, errors = ConfigurationValidator().validate_config(values)
        if not is_valid:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
            raise ConfigurationError(error_msg)

        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@lru_cache(maxsize=16)
def load_shortify_config(config_path: str = DEFAULT_CONFIG_PATH) -> ShortifyConfig:
    """
    Load the Shortify configuration with caching.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        ShortifyConfig built from the file's ``shortify`` section, or the
        defaults if the file does not exist

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Shortify configuration not found: {path}, using defaults")
        return ShortifyConfig()

    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration {path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration root in {path} must be a mapping")

    section = raw.get("shortify", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'shortify' section in {path} must be a mapping")

    section = _coerce_env_values(_substitute_env_vars(section))
    config = ShortifyConfig.from_dict(section)
    logger.debug(f"Loaded Shortify configuration from {path}")
    return config


def _substitute_env_vars(config: Any) -> Any:
    """
    Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
    """
    if isinstance(config, dict):
        return {key: _substitute_env_vars(value) for key, value in config.items()}
    elif isinstance(config, list):
        return [_substitute_env_vars(item) for item in config]
    elif isinstance(config, str):
        def replace_env_var(match):
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return os.getenv(var_name, default)
            else:
                return os.getenv(var_expr, match.group(0))  # Return original if not found

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, config)
    else:
        return config


def _coerce_env_values(section: Dict[str, Any]) -> Dict[str, Any]:
    """Re-parse substituted strings as YAML scalars so ``${FPS:-60}`` becomes an int."""
    coerced = {}
    for key, value in section.items():
        expected = SHORTIFY_SCHEMA["properties"].get(key, {}).get("type")
        if isinstance(value, str) and expected in ("integer", "number", "boolean"):
            try:
                coerced[key] = yaml.safe_load(value)
            except yaml.YAMLError:
                coerced[key] = value
        else:
            coerced[key] = value
    return coerced


def clear_config_cache():
    """Clear the configuration cache to force reloading on next access."""
    load_shortify_config.cache_clear()
    logger.debug("Configuration cache cleared")
