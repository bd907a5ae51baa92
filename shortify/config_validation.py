#!/usr/bin/env python3
"""
Configuration validation for the Shortify pipeline.

This module provides JSON Schema-based validation for the ``shortify`` section
of the configuration file, so that bad parameters are reported before any
ffmpeg process is started.
"""

import logging
from typing import Any, Dict, List, Tuple

from jsonschema import Draft7Validator, ValidationError

logger = logging.getLogger(__name__)


SHORTIFY_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Shortify configuration",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "frame_rate": {"type": "integer", "minimum": 1, "maximum": 240},
        "scene_threshold": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
        "min_scene_frames": {"type": "integer", "minimum": 1},
        "fallback_interval": {"type": "number", "exclusiveMinimum": 0},
        "stills_threshold": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
        "output_file": {"type": "string", "minLength": 1},
        "stills_dir": {"type": "string", "minLength": 1},
        "temp_prefix": {"type": "string", "minLength": 1},
        "temp_root": {"type": ["string", "null"]},
        "video_codec": {"type": "string", "minLength": 1},
        "pixel_format": {"type": "string", "minLength": 1},
        "audio_codec": {"type": "string", "minLength": 1},
        "allow_silent_output": {"type": "boolean"},
        "probe_workers": {"type": "integer", "minimum": 1, "maximum": 16},
    },
}


class ConfigurationValidator:
    """Schema-based validator with readable error reporting."""

    def __init__(self, schema: Dict[str, Any] = None):
        self.schema = schema or SHORTIFY_SCHEMA
        self._validator = Draft7Validator(self.schema)

    def validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate a configuration mapping against the schema.

        Args:
            config: The ``shortify`` section as a dictionary

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = [
            self._format_validation_error(error)
            for error in sorted(self._validator.iter_errors(config), key=lambda e: list(e.absolute_path))
        ]
        return len(errors) == 0, errors

    def _format_validation_error(self, error: ValidationError) -> str:
        path = " -> ".join(str(p) for p in error.absolute_path)
        if path:
            return f"Error at '{path}': {error.message}"
        else:
            return f"Error: {error.message}"
