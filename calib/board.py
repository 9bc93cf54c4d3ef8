"""Chessboard world-point geometry."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np


def board_world_points(corner_grid: Tuple[int, int], square_size: float) -> np.ndarray:
    """Return the planar world coordinates of every inner corner.

    Corner ``(col, row)`` maps to ``(col * square_size, row * square_size, 0)``.
    Rows are outer and columns inner, which is the order
    ``cv2.findChessboardCorners`` reports corners in.

    Returns:
        ``(cols * rows, 3)`` float32 array
    """
    cols, rows = corner_grid
    objp = np.zeros((cols * rows, 3), np.float32)
    objp[:, :2] = np.mgrid[0:cols, 0:rows].T.reshape(-1, 2)
    objp[:, :2] *= float(square_size)
    return objp


def replicate_world_points(world_points: np.ndarray, count: int) -> List[np.ndarray]:
    """One independent copy of the board points per observation."""
    return [world_points.copy() for _ in range(count)]
