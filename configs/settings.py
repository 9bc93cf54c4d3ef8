"""Configuration loading for the intrinsic calibrator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from configs.validator import validate_config
from contracts import TargetGeometry
from exceptions import InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default.yaml"


@dataclass(frozen=True)
class CameraConfig:
    index: int
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    open_timeout_s: float = 5.0
    open_attempts: int = 3
    read_timeout_ms: int = 1000


@dataclass(frozen=True)
class BoardConfig:
    cols: int  # Inner corners per row
    rows: int  # Inner corners per column
    square_size: float

    def to_geometry(self) -> TargetGeometry:
        return TargetGeometry(corner_grid=(self.cols, self.rows), square_size=self.square_size)


@dataclass(frozen=True)
class CollectionConfig:
    target_frames: int
    min_frames: int


@dataclass(frozen=True)
class DetectionConfig:
    adaptive_thresh: bool = True
    normalize_image: bool = True
    filter_quads: bool = False


@dataclass(frozen=True)
class RefinementConfig:
    window_size: int = 11
    max_iterations: int = 30
    epsilon: float = 0.001


@dataclass(frozen=True)
class SolverConfig:
    distortion_coefficients: int = 5


@dataclass(frozen=True)
class DisplayConfig:
    window_name: str = "Intrinsic Calibration"
    poll_ms: int = 30
    show_undistorted: bool = True


@dataclass(frozen=True)
class OutputConfig:
    directory: str = "calibration"
    matrix_file: str = "camera_matrix.txt"
    coefficients_file: str = "distortion_coefficients.txt"
    yaml_file: str = "intrinsic_calibration.yaml"
    flat_file: Optional[str] = "intrinsic_calibration.txt"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_dir: Optional[str] = "logs"


@dataclass(frozen=True)
class AppConfig:
    camera: CameraConfig
    board: BoardConfig
    collection: CollectionConfig
    detection: DetectionConfig
    refinement: RefinementConfig
    solver: SolverConfig
    display: DisplayConfig
    output: OutputConfig
    logging: LoggingConfig


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text())
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Configuration file is empty or not a mapping: {path}")

        # Validate against JSON Schema (fills in defaults)
        validate_config(data)

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    try:
        config = AppConfig(
            camera=CameraConfig(**data["camera"]),
            board=BoardConfig(**data["board"]),
            collection=CollectionConfig(**data["collection"]),
            detection=DetectionConfig(**data["detection"]),
            refinement=RefinementConfig(**data["refinement"]),
            solver=SolverConfig(**data["solver"]),
            display=DisplayConfig(**data["display"]),
            output=OutputConfig(**data["output"]),
            logging=LoggingConfig(**data["logging"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    logger.debug(
        f"Configuration loaded: camera {config.camera.index}, "
        f"board {config.board.cols}x{config.board.rows} @ {config.board.square_size}, "
        f"{config.collection.target_frames} target frames (min {config.collection.min_frames})"
    )
    return config
