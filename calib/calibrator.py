"""Intrinsic calibration from an accepted set of chessboard frames."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

import numpy as np

from contracts import CalibrationResult, Frame, TargetGeometry
from detect.chessboard import CornerLocator
from exceptions import InsufficientFramesError
from log_config.logger import get_logger

from .board import board_world_points, replicate_world_points
from .quality import compute_per_frame_errors
from .solver import CalibrationSolver, OpenCVCalibrationSolver

logger = get_logger(__name__)

DEFAULT_MIN_FRAMES = 15


class IntrinsicsCalibrator(ABC):
    @abstractmethod
    def calibrate(self, frames: Iterable[Frame], target_geometry: TargetGeometry) -> CalibrationResult:
        """Compute camera intrinsics from calibration frames."""


class ChessboardCalibrator(IntrinsicsCalibrator):
    """Refines corners on every accepted frame and runs the solver once.

    Raises InsufficientFramesError before any solver call when fewer than
    ``min_frames`` frames are supplied or survive refinement.
    """

    def __init__(
        self,
        locator: Optional[CornerLocator] = None,
        solver: Optional[CalibrationSolver] = None,
        min_frames: int = DEFAULT_MIN_FRAMES,
    ) -> None:
        if min_frames < 1:
            raise ValueError(f"min_frames must be positive, got {min_frames}")
        self._locator = locator or CornerLocator()
        self._solver = solver or OpenCVCalibrationSolver()
        self._min_frames = min_frames

    @property
    def min_frames(self) -> int:
        return self._min_frames

    def calibrate(self, frames: Iterable[Frame], target_geometry: TargetGeometry) -> CalibrationResult:
        frames = list(frames)
        if len(frames) < self._min_frames:
            raise InsufficientFramesError(available=len(frames), required=self._min_frames)

        image_size = (int(frames[0].width), int(frames[0].height))
        image_points, dropped = self._locate_corners(frames, target_geometry, image_size)
        if dropped:
            logger.warning(f"Dropped {dropped} of {len(frames)} frames during corner refinement")
        if len(image_points) < self._min_frames:
            raise InsufficientFramesError(
                available=len(image_points),
                required=self._min_frames,
                dropped=dropped,
            )

        world_points = replicate_world_points(
            board_world_points(target_geometry.corner_grid, target_geometry.square_size),
            len(image_points),
        )
        output = self._solver.solve(world_points, image_points, image_size)
        per_frame_errors = compute_per_frame_errors(world_points, image_points, output)

        logger.info(
            f"Calibrated from {len(image_points)} frames: RMS {output.reprojection_error:.4f}px, "
            f"fx={output.camera_matrix[0, 0]:.2f} fy={output.camera_matrix[1, 1]:.2f}"
        )
        return CalibrationResult(
            camera_matrix=output.camera_matrix,
            distortion_coefficients=tuple(float(v) for v in output.distortion_coefficients),
            reprojection_error=output.reprojection_error,
            image_size=image_size,
            frames_used=len(image_points),
            frames_dropped=dropped,
            per_frame_errors=tuple(per_frame_errors),
        )

    def _locate_corners(
        self,
        frames: List[Frame],
        target_geometry: TargetGeometry,
        image_size: Tuple[int, int],
    ) -> Tuple[List[np.ndarray], int]:
        image_points: List[np.ndarray] = []
        dropped = 0
        for position, frame in enumerate(frames, 1):
            if (frame.width, frame.height) != image_size:
                logger.warning(
                    f"Frame {position}: size {frame.width}x{frame.height} differs from "
                    f"{image_size[0]}x{image_size[1]}, dropping"
                )
                dropped += 1
                continue
            corners = self._locator.locate(frame.image, target_geometry.corner_grid)
            if corners is None:
                logger.debug(f"Frame {position}: corners not refined, dropping")
                dropped += 1
                continue
            image_points.append(corners)
        return image_points, dropped
