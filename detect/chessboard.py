"""Chessboard corner detection and subpixel refinement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from configs.settings import DetectionConfig, RefinementConfig
from exceptions import CornerRefinementError
from log_config.logger import get_logger

from .utils import to_grayscale

logger = get_logger(__name__)

Grid = Tuple[int, int]


@dataclass(frozen=True)
class ChessboardDetection:
    found: bool
    corners: Optional[np.ndarray]  # (N, 1, 2) float32 in OpenCV scan order


class ChessboardDetector:
    """Coarse inner-corner detection with ``cv2.findChessboardCorners``.

    ``fast_check`` makes the detector bail out quickly on frames without a
    board, which is what a live preview needs. The calibration pass runs
    without it.
    """

    def __init__(self, config: Optional[DetectionConfig] = None, fast_check: bool = False) -> None:
        config = config or DetectionConfig()
        flags = 0
        if config.adaptive_thresh:
            flags |= cv2.CALIB_CB_ADAPTIVE_THRESH
        if config.normalize_image:
            flags |= cv2.CALIB_CB_NORMALIZE_IMAGE
        if config.filter_quads:
            flags |= cv2.CALIB_CB_FILTER_QUADS
        if fast_check:
            flags |= cv2.CALIB_CB_FAST_CHECK
        self._flags = flags

    @property
    def flags(self) -> int:
        return self._flags

    def detect(self, image: np.ndarray, grid: Grid) -> ChessboardDetection:
        gray = to_grayscale(image)
        found, corners = cv2.findChessboardCorners(gray, tuple(grid), flags=self._flags)
        expected = grid[0] * grid[1]
        if not found or corners is None or len(corners) != expected:
            return ChessboardDetection(found=False, corners=None)
        return ChessboardDetection(found=True, corners=corners.reshape(-1, 1, 2))


class SubpixelRefiner:
    def __init__(self, config: Optional[RefinementConfig] = None) -> None:
        config = config or RefinementConfig()
        self._window = (config.window_size, config.window_size)
        self._criteria = (
            cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
            config.max_iterations,
            config.epsilon,
        )

    def refine(self, gray: np.ndarray, corners: np.ndarray) -> np.ndarray:
        """Refine coarse corners to subpixel accuracy.

        Raises:
            CornerRefinementError: If OpenCV rejects the input or returns
                non-finite coordinates
        """
        try:
            refined = cv2.cornerSubPix(
                gray,
                np.ascontiguousarray(corners, dtype=np.float32).copy(),
                winSize=self._window,
                zeroZone=(-1, -1),
                criteria=self._criteria,
            )
        except cv2.error as e:
            raise CornerRefinementError(f"cornerSubPix failed: {e}") from e
        if refined is None or not np.all(np.isfinite(refined)):
            raise CornerRefinementError("cornerSubPix returned non-finite corners")
        return refined.reshape(-1, 1, 2)


class CornerLocator:
    """Strict detection followed by subpixel refinement on a single frame."""

    def __init__(
        self,
        detector: Optional[ChessboardDetector] = None,
        refiner: Optional[SubpixelRefiner] = None,
    ) -> None:
        self._detector = detector or ChessboardDetector()
        self._refiner = refiner or SubpixelRefiner()

    def locate(self, image: np.ndarray, grid: Grid) -> Optional[np.ndarray]:
        """Return refined ``(N, 1, 2)`` corners, or None if the board is not usable."""
        gray = to_grayscale(image)
        detection = self._detector.detect(gray, grid)
        if not detection.found:
            logger.debug("Corners not found on refinement pass")
            return None
        try:
            return self._refiner.refine(gray, detection.corners)
        except CornerRefinementError as e:
            logger.debug(f"Dropping frame: {e}")
            return None
