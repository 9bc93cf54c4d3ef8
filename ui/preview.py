"""OpenCV-based preview window with chessboard overlay."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from detect.chessboard import ChessboardDetection

KEY_HINT = "SPACE accept | ENTER calibrate | ESC quit"


class FramePresenter(ABC):
    @abstractmethod
    def show(
        self,
        image: np.ndarray,
        detection: Optional[ChessboardDetection],
        grid: Tuple[int, int],
        accepted: int,
        target: int,
    ) -> None:
        """Display a live frame, overlaying detected corners when found."""

    @abstractmethod
    def show_image(self, image: np.ndarray, caption: str = "") -> None:
        """Display an arbitrary image with an optional caption."""

    def close(self) -> None:
        return None


class NullPresenter(FramePresenter):
    """Headless presenter that only counts what it was asked to show."""

    def __init__(self) -> None:
        self.frames_shown = 0
        self.detections_shown = 0
        self.closed = False

    def show(self, image, detection, grid, accepted, target) -> None:
        self.frames_shown += 1
        if detection is not None and detection.found:
            self.detections_shown += 1

    def show_image(self, image, caption: str = "") -> None:
        self.frames_shown += 1

    def close(self) -> None:
        self.closed = True


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def _draw_text(canvas: np.ndarray, text: str, origin: Tuple[int, int], color) -> None:
    cv2.putText(canvas, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 4, cv2.LINE_AA)
    cv2.putText(canvas, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)


class OpenCVPresenter(FramePresenter):
    def __init__(self, window_name: str) -> None:
        self._window_name = window_name
        self._window_open = False

    def show(self, image, detection, grid, accepted, target) -> None:
        canvas = _to_bgr(image)
        found = detection is not None and detection.found
        if found:
            cv2.drawChessboardCorners(canvas, tuple(grid), detection.corners, True)
        status_color = (0, 255, 0) if found else (0, 0, 255)
        status = "board found - accept?" if found else "searching for board"
        _draw_text(canvas, f"{accepted}/{target} | {status}", (10, 30), status_color)
        _draw_text(canvas, KEY_HINT, (10, canvas.shape[0] - 15), (255, 255, 255))
        self._display(canvas)

    def show_image(self, image, caption: str = "") -> None:
        canvas = _to_bgr(image)
        if caption:
            _draw_text(canvas, caption, (10, 30), (255, 255, 255))
        self._display(canvas)

    def _display(self, canvas: np.ndarray) -> None:
        if not self._window_open:
            cv2.namedWindow(self._window_name, cv2.WINDOW_AUTOSIZE)
            self._window_open = True
        cv2.imshow(self._window_name, canvas)

    def close(self) -> None:
        if self._window_open:
            cv2.destroyWindow(self._window_name)
            self._window_open = False
