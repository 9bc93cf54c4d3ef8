"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["camera", "board", "collection"],
    "properties": {
        "camera": {
            "type": "object",
            "required": ["index"],
            "properties": {
                "index": {"type": "integer", "minimum": 0, "maximum": 63},
                "width": {"type": ["integer", "null"], "minimum": 160, "maximum": 7680, "default": None},
                "height": {"type": ["integer", "null"], "minimum": 120, "maximum": 4320, "default": None},
                "fps": {"type": ["integer", "null"], "minimum": 1, "maximum": 240, "default": None},
                "open_timeout_s": {"type": "number", "minimum": 0.1, "maximum": 60.0, "default": 5.0},
                "open_attempts": {"type": "integer", "minimum": 1, "maximum": 10, "default": 3},
                "read_timeout_ms": {"type": "integer", "minimum": 1, "maximum": 60000, "default": 1000},
            },
        },
        "board": {
            "type": "object",
            "required": ["cols", "rows", "square_size"],
            "properties": {
                "cols": {"type": "integer", "minimum": 2, "maximum": 100},
                "rows": {"type": "integer", "minimum": 2, "maximum": 100},
                "square_size": {"type": "number", "exclusiveMinimum": 0},
            },
        },
        "collection": {
            "type": "object",
            "required": ["target_frames", "min_frames"],
            "properties": {
                "target_frames": {"type": "integer", "minimum": 1, "maximum": 500},
                "min_frames": {"type": "integer", "minimum": 3, "maximum": 500},
            },
        },
        "detection": {
            "type": "object",
            "default": {},
            "properties": {
                "adaptive_thresh": {"type": "boolean", "default": True},
                "normalize_image": {"type": "boolean", "default": True},
                "filter_quads": {"type": "boolean", "default": False},
            },
        },
        "refinement": {
            "type": "object",
            "default": {},
            "properties": {
                "window_size": {"type": "integer", "minimum": 2, "maximum": 50, "default": 11},
                "max_iterations": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 30},
                "epsilon": {"type": "number", "exclusiveMinimum": 0, "maximum": 1.0, "default": 0.001},
            },
        },
        "solver": {
            "type": "object",
            "default": {},
            "properties": {
                "distortion_coefficients": {"type": "integer", "enum": [4, 5, 8], "default": 5},
            },
        },
        "display": {
            "type": "object",
            "default": {},
            "properties": {
                "window_name": {"type": "string", "minLength": 1, "default": "Intrinsic Calibration"},
                "poll_ms": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 30},
                "show_undistorted": {"type": "boolean", "default": True},
            },
        },
        "output": {
            "type": "object",
            "default": {},
            "properties": {
                "directory": {"type": "string", "default": "calibration"},
                "matrix_file": {"type": "string", "default": "camera_matrix.txt"},
                "coefficients_file": {"type": "string", "default": "distortion_coefficients.txt"},
                "yaml_file": {"type": "string", "default": "intrinsic_calibration.yaml"},
                "flat_file": {"type": ["string", "null"], "default": "intrinsic_calibration.txt"},
            },
        },
        "logging": {
            "type": "object",
            "default": {},
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
                    "default": "INFO",
                },
                "log_dir": {"type": ["string", "null"], "default": "logs"},
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        for prop, subschema in properties.items():
            if "default" in subschema:
                instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema, filling in defaults.

    Args:
        config: Configuration dictionary (defaults are written into it)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        collection = config["collection"]
        if collection["target_frames"] < collection["min_frames"]:
            message = "collection -> target_frames: must be at least collection.min_frames"
            logger.error(f"Configuration validation failed: {message}")
            raise ConfigValidationError(message, validation_errors=[message])

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
