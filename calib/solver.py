"""Calibration solver backed by ``cv2.calibrateCamera``."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import cv2
import numpy as np

from configs.settings import SolverConfig
from exceptions import CalibrationSolverError
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SolverOutput:
    reprojection_error: float
    camera_matrix: np.ndarray
    distortion_coefficients: np.ndarray
    rvecs: Tuple[Any, ...]
    tvecs: Tuple[Any, ...]


class CalibrationSolver(ABC):
    @abstractmethod
    def solve(
        self,
        world_points: Sequence[np.ndarray],
        image_points: Sequence[np.ndarray],
        image_size: Tuple[int, int],
    ) -> SolverOutput:
        """Estimate intrinsics from matched world/image point lists."""


class OpenCVCalibrationSolver(CalibrationSolver):
    """Zhang-style planar calibration with 4, 5 or 8 distortion coefficients."""

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        config = config or SolverConfig()
        self._coefficient_count = config.distortion_coefficients
        if self._coefficient_count == 4:
            self._flags = cv2.CALIB_FIX_K3
        elif self._coefficient_count == 8:
            self._flags = cv2.CALIB_RATIONAL_MODEL
        elif self._coefficient_count == 5:
            self._flags = 0
        else:
            raise ValueError(f"Unsupported distortion model: {self._coefficient_count} coefficients")

    def solve(
        self,
        world_points: Sequence[np.ndarray],
        image_points: Sequence[np.ndarray],
        image_size: Tuple[int, int],
    ) -> SolverOutput:
        if len(world_points) != len(image_points):
            raise CalibrationSolverError(
                f"Mismatched observations: {len(world_points)} world point lists, "
                f"{len(image_points)} image point lists"
            )

        logger.info(f"Solving intrinsics from {len(image_points)} views at {image_size[0]}x{image_size[1]}")
        dist_init = np.zeros((8 if self._coefficient_count == 8 else 5, 1), np.float64)
        try:
            rms, camera_matrix, dist, rvecs, tvecs = cv2.calibrateCamera(
                [np.asarray(p, np.float32) for p in world_points],
                [np.asarray(p, np.float32) for p in image_points],
                tuple(int(v) for v in image_size),
                None,
                dist_init,
                flags=self._flags,
            )
        except cv2.error as e:
            logger.error(f"calibrateCamera failed: {e}")
            raise CalibrationSolverError(f"Calibration solver failed: {e}") from e

        dist = np.asarray(dist, np.float64).ravel()[: self._coefficient_count]
        camera_matrix = np.asarray(camera_matrix, np.float64)

        if not (np.isfinite(rms) and np.all(np.isfinite(camera_matrix)) and np.all(np.isfinite(dist))):
            raise CalibrationSolverError("Calibration solver did not converge (non-finite output)")
        if camera_matrix[0, 0] <= 0 or camera_matrix[1, 1] <= 0:
            raise CalibrationSolverError(
                f"Calibration solver produced invalid focal lengths "
                f"fx={camera_matrix[0, 0]:.3f}, fy={camera_matrix[1, 1]:.3f}"
            )

        return SolverOutput(
            reprojection_error=float(rms),
            camera_matrix=camera_matrix,
            distortion_coefficients=dist,
            rvecs=tuple(rvecs),
            tvecs=tuple(tvecs),
        )
