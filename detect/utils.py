from __future__ import annotations

import cv2
import numpy as np


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """Return an 8-bit single-channel view of a BGR or grayscale frame."""
    if frame.ndim == 3:
        if frame.shape[2] == 4:
            return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if frame.dtype != np.uint8:
        return cv2.convertScaleAbs(frame)
    return frame


def compute_focus_score(image: np.ndarray) -> float:
    """Compute focus quality score using variance of Laplacian method.

    Higher values indicate better focus (more edge detail/sharpness).

    Args:
        image: Grayscale or color image (converted to grayscale if color)

    Returns:
        Focus quality score (typically 0-1000+ for in-focus images,
        <100 for severely out-of-focus images)
    """
    gray = to_grayscale(image)

    # ksize=3 is standard for focus measurement
    laplacian = cv2.Laplacian(gray, cv2.CV_64F, ksize=3)
    return float(laplacian.var())
