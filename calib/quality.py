"""Reprojection error breakdown and calibration quality rating."""

from __future__ import annotations

from typing import List, Sequence

import cv2
import numpy as np

from .solver import SolverOutput

# Quality thresholds
EXCELLENT_RMS = 0.5
GOOD_RMS = 1.0
ACCEPTABLE_RMS = 2.0
MIN_IMAGES_GOOD = 15
MIN_IMAGES_ACCEPTABLE = 10


def compute_per_frame_errors(
    world_points: Sequence[np.ndarray],
    image_points: Sequence[np.ndarray],
    output: SolverOutput,
) -> List[float]:
    """RMS pixel distance between observed and reprojected corners, per view."""
    errors = []
    for obj_pts, img_pts, rvec, tvec in zip(world_points, image_points, output.rvecs, output.tvecs):
        projected, _ = cv2.projectPoints(
            np.asarray(obj_pts, np.float32),
            rvec,
            tvec,
            output.camera_matrix,
            output.distortion_coefficients,
        )
        diff = np.asarray(img_pts, np.float64).reshape(-1, 2) - projected.reshape(-1, 2)
        errors.append(float(np.sqrt(np.mean(np.sum(diff**2, axis=1)))))
    return errors


def rate_calibration_quality(rms_error: float, num_images: int) -> dict:
    """Rate calibration quality and provide recommendations.

    Args:
        rms_error: Overall RMS reprojection error in pixels
        num_images: Number of images used for calibration

    Returns:
        Dictionary with rating, description, and recommendations
    """
    recommendations = []

    if rms_error < EXCELLENT_RMS and num_images >= MIN_IMAGES_GOOD:
        rating = "EXCELLENT"
        description = "Outstanding calibration."
    elif rms_error < GOOD_RMS and num_images >= MIN_IMAGES_GOOD:
        rating = "GOOD"
        description = "Good calibration. Suitable for most uses."
    elif rms_error < ACCEPTABLE_RMS and num_images >= MIN_IMAGES_ACCEPTABLE:
        rating = "ACCEPTABLE"
        description = "Acceptable calibration. Consider recalibrating for better accuracy."
        recommendations.append("Capture more images (aim for 15-20)")
        recommendations.append("Cover the whole field of view with varied board poses")
    else:
        rating = "POOR"
        description = "Poor calibration. Please recalibrate."

    if rms_error > GOOD_RMS:
        recommendations.extend([
            "Hold the board steady during capture",
            "Ensure the board is perfectly flat",
            "Check camera focus is sharp",
            "Improve lighting (even, no shadows)",
        ])

    if num_images < MIN_IMAGES_ACCEPTABLE:
        recommendations.append(f"Need at least {MIN_IMAGES_ACCEPTABLE} images (have {num_images})")
    elif num_images < MIN_IMAGES_GOOD:
        recommendations.append(f"Capture {MIN_IMAGES_GOOD - num_images} more images for better quality")

    if rms_error > ACCEPTABLE_RMS:
        recommendations.extend([
            "Verify the square size and grid dimensions are correct",
            "Check for lens damage or a loose mount",
        ])

    return {
        "rating": rating,
        "description": description,
        "rms_error_px": float(rms_error),
        "num_images": num_images,
        "recommendations": recommendations,
    }
