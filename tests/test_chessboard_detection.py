"""Chessboard detection and refinement on rendered boards."""

from unittest.mock import patch

import cv2
import numpy as np

from configs.settings import RefinementConfig
from detect.chessboard import ChessboardDetector, CornerLocator, SubpixelRefiner
from detect.utils import compute_focus_score, to_grayscale

SQUARE_PX = 40
MARGIN_PX = 60


def _render_board(cols: int = 6, rows: int = 9) -> np.ndarray:
    """White-bordered board with ``cols`` x ``rows`` inner corners."""
    squares_x, squares_y = cols + 1, rows + 1
    height = squares_y * SQUARE_PX + 2 * MARGIN_PX
    width = squares_x * SQUARE_PX + 2 * MARGIN_PX
    image = np.full((height, width), 255, dtype=np.uint8)
    for r in range(squares_y):
        for c in range(squares_x):
            if (r + c) % 2 == 0:
                y0 = MARGIN_PX + r * SQUARE_PX
                x0 = MARGIN_PX + c * SQUARE_PX
                image[y0:y0 + SQUARE_PX, x0:x0 + SQUARE_PX] = 0
    return cv2.GaussianBlur(image, (3, 3), 0)


def test_detects_rendered_board() -> None:
    detection = ChessboardDetector().detect(_render_board(), (6, 9))

    assert detection.found
    assert detection.corners.shape == (54, 1, 2)


def test_flat_corner_array_reshaped() -> None:
    flat = np.zeros((54, 2), dtype=np.float32)
    with patch("detect.chessboard.cv2.findChessboardCorners", return_value=(True, flat)):
        detection = ChessboardDetector().detect(_render_board(), (6, 9))

    assert detection.found
    assert detection.corners.shape == (54, 1, 2)


def test_refined_corners_keep_column_shape() -> None:
    board = _render_board()
    flat = ChessboardDetector().detect(board, (6, 9)).corners.reshape(-1, 2)

    refined = SubpixelRefiner().refine(board, flat)
    assert refined.shape == (54, 1, 2)


def test_detects_board_in_color_frame() -> None:
    color = cv2.cvtColor(_render_board(), cv2.COLOR_GRAY2BGR)
    assert ChessboardDetector(fast_check=True).detect(color, (6, 9)).found


def test_blank_frame_not_found() -> None:
    blank = np.full((480, 640), 127, dtype=np.uint8)
    detection = ChessboardDetector(fast_check=True).detect(blank, (6, 9))

    assert not detection.found
    assert detection.corners is None


def test_wrong_grid_not_found() -> None:
    assert not ChessboardDetector().detect(_render_board(), (7, 9)).found


def test_locator_refines_onto_square_corners() -> None:
    board = _render_board()
    corners = CornerLocator().locate(board, (6, 9))

    assert corners is not None
    points = corners.reshape(-1, 2)
    # Every refined corner sits on the square lattice
    offsets = (points - MARGIN_PX) / SQUARE_PX
    np.testing.assert_allclose(offsets, np.round(offsets), atol=0.05)


def test_locator_returns_none_without_board() -> None:
    blank = np.zeros((480, 640), dtype=np.uint8)
    assert CornerLocator().locate(blank, (6, 9)) is None


def test_refiner_preserves_corner_count() -> None:
    board = _render_board()
    detection = ChessboardDetector().detect(board, (6, 9))

    refined = SubpixelRefiner(RefinementConfig(window_size=5)).refine(board, detection.corners)
    assert refined.shape == detection.corners.shape


def test_grayscale_and_focus_helpers() -> None:
    board = _render_board()
    color = cv2.cvtColor(board, cv2.COLOR_GRAY2BGR)

    assert to_grayscale(color).shape == board.shape
    assert to_grayscale(board) is board
    assert compute_focus_score(board) > compute_focus_score(np.zeros_like(board))
