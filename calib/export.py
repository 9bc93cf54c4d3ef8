"""Persistence of calibration results to text and YAML files."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import numpy as np
import yaml

from configs.settings import OutputConfig
from contracts import CalibrationResult, TargetGeometry
from contracts.versioning import make_envelope
from exceptions import CalibrationFileError, FileWriteError
from log_config.logger import get_logger

from .quality import rate_calibration_quality

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _format_value(value: float) -> str:
    return format(float(value), ".12g")


def _format_row(values: Iterable[float]) -> str:
    return " ".join(_format_value(v) for v in values)


def _write_text(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        raise FileWriteError(f"Failed to write {path}: {e}") from e
    logger.debug(f"Wrote {path}")
    return path


def write_matrix_text(path: PathLike, camera_matrix) -> Path:
    """One whitespace-separated row per matrix row."""
    matrix = np.asarray(camera_matrix, np.float64)
    return _write_text(Path(path), "\n".join(_format_row(row) for row in matrix) + "\n")


def write_coefficients_text(path: PathLike, coefficients: Iterable[float]) -> Path:
    """All distortion coefficients on a single whitespace-separated line."""
    return _write_text(Path(path), _format_row(coefficients) + "\n")


def write_flat_text(path: PathLike, result: CalibrationResult) -> Path:
    """Every matrix value, then every coefficient, one value per line."""
    values = list(np.asarray(result.camera_matrix, np.float64).ravel()) + list(result.distortion_coefficients)
    return _write_text(Path(path), "".join(f"{_format_value(v)}\n" for v in values))


def result_to_document(result: CalibrationResult, target_geometry: Optional[TargetGeometry] = None) -> dict:
    quality = rate_calibration_quality(result.reprojection_error, result.frames_used)
    document = {
        "created_utc": datetime.now(timezone.utc).isoformat(),
        "image_size": [int(v) for v in result.image_size],
        "camera_matrix": np.asarray(result.camera_matrix, np.float64).tolist(),
        "distortion_coefficients": [float(v) for v in result.distortion_coefficients],
        "reprojection_error": float(result.reprojection_error),
        "frames_used": int(result.frames_used),
        "frames_dropped": int(result.frames_dropped),
        "per_frame_errors": [float(v) for v in result.per_frame_errors],
        "quality": {
            "rating": quality["rating"],
            "description": quality["description"],
        },
    }
    if target_geometry is not None:
        document["board"] = {
            "cols": int(target_geometry.corner_grid[0]),
            "rows": int(target_geometry.corner_grid[1]),
            "square_size": float(target_geometry.square_size),
        }
    return make_envelope(document)


def write_yaml(
    path: PathLike,
    result: CalibrationResult,
    target_geometry: Optional[TargetGeometry] = None,
) -> Path:
    document = result_to_document(result, target_geometry)
    return _write_text(Path(path), yaml.safe_dump(document, sort_keys=False))


def load_calibration(path: PathLike) -> CalibrationResult:
    """Read a calibration YAML written by ``write_yaml``.

    Raises:
        CalibrationFileError: If the file is missing, unparseable, or lacks
            a 3x3 camera matrix
    """
    path = Path(path)
    if not path.exists():
        raise CalibrationFileError(f"Calibration file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise CalibrationFileError(f"Failed to parse calibration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise CalibrationFileError(f"Calibration file {path} is not a mapping")

    try:
        camera_matrix = np.asarray(data["camera_matrix"], np.float64)
        coefficients = tuple(float(v) for v in data["distortion_coefficients"])
        reprojection_error = float(data["reprojection_error"])
    except (KeyError, TypeError, ValueError) as e:
        raise CalibrationFileError(f"Calibration file {path} is missing fields: {e}") from e
    if camera_matrix.shape != (3, 3):
        raise CalibrationFileError(f"Camera matrix in {path} has shape {camera_matrix.shape}, expected (3, 3)")

    image_size = data.get("image_size") or (0, 0)
    return CalibrationResult(
        camera_matrix=camera_matrix,
        distortion_coefficients=coefficients,
        reprojection_error=reprojection_error,
        image_size=(int(image_size[0]), int(image_size[1])),
        frames_used=int(data.get("frames_used", 0)),
        frames_dropped=int(data.get("frames_dropped", 0)),
        per_frame_errors=tuple(float(v) for v in data.get("per_frame_errors", [])),
    )


class CalibrationExporter:
    """Writes a result to every configured sink under one output directory."""

    def __init__(self, config: Optional[OutputConfig] = None) -> None:
        self._config = config or OutputConfig()

    @property
    def directory(self) -> Path:
        return Path(self._config.directory)

    def export(
        self,
        result: CalibrationResult,
        target_geometry: Optional[TargetGeometry] = None,
    ) -> Dict[str, Path]:
        """Write all sinks.

        Returns:
            Mapping of sink name to written path

        Raises:
            FileWriteError: If any file cannot be written
        """
        out = self.directory
        written = {
            "matrix": write_matrix_text(out / self._config.matrix_file, result.camera_matrix),
            "coefficients": write_coefficients_text(
                out / self._config.coefficients_file, result.distortion_coefficients
            ),
            "yaml": write_yaml(out / self._config.yaml_file, result, target_geometry),
        }
        if self._config.flat_file:
            written["flat"] = write_flat_text(out / self._config.flat_file, result)

        logger.info(f"Saved calibration to {out.resolve()}")
        return written
