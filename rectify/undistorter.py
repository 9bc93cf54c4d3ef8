"""Lens undistortion from a saved or fresh intrinsic calibration."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, Sequence, Tuple, Union

import cv2
import numpy as np

from contracts import CalibrationResult, Frame


class Undistorter:
    """Removes lens distortion with ``cv2.undistort``.

    ``alpha`` is passed to ``cv2.getOptimalNewCameraMatrix``: 0 crops to
    valid pixels only, 1 keeps every source pixel.
    """

    def __init__(self, camera_matrix, distortion_coefficients: Sequence[float], alpha: float = 0.0) -> None:
        self._camera_matrix = np.asarray(camera_matrix, np.float64)
        self._dist = np.asarray(distortion_coefficients, np.float64).reshape(-1, 1)
        self._alpha = alpha
        self._new_matrices: Dict[Tuple[int, int], np.ndarray] = {}

    @classmethod
    def from_result(cls, result: CalibrationResult, alpha: float = 0.0) -> "Undistorter":
        return cls(result.camera_matrix, result.distortion_coefficients, alpha=alpha)

    @classmethod
    def from_file(cls, path: Union[str, Path], alpha: float = 0.0) -> "Undistorter":
        from calib.export import load_calibration

        return cls.from_result(load_calibration(path), alpha=alpha)

    def _new_camera_matrix(self, size: Tuple[int, int]) -> np.ndarray:
        if size not in self._new_matrices:
            new_matrix, _ = cv2.getOptimalNewCameraMatrix(
                self._camera_matrix, self._dist, size, self._alpha, size
            )
            self._new_matrices[size] = new_matrix
        return self._new_matrices[size]

    def undistort(self, image: np.ndarray) -> np.ndarray:
        size = (image.shape[1], image.shape[0])
        return cv2.undistort(image, self._camera_matrix, self._dist, None, self._new_camera_matrix(size))

    def rectify(self, frame: Frame) -> Frame:
        return replace(frame, image=self.undistort(frame.image))
