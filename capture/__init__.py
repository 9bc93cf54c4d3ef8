"""Capture module."""

from .camera_device import CameraDevice, CameraStats, camera_session
from .opencv_backend import OpenCVCamera
from .simulated_camera import SimulatedCamera

__all__ = ["CameraDevice", "CameraStats", "OpenCVCamera", "SimulatedCamera", "camera_session"]
