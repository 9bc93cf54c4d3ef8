"""Calibration module."""

from .board import board_world_points
from .calibrator import ChessboardCalibrator, IntrinsicsCalibrator
from .collector import FrameCollector
from .export import CalibrationExporter, load_calibration
from .solver import CalibrationSolver, OpenCVCalibrationSolver, SolverOutput

__all__ = [
    "CalibrationExporter",
    "CalibrationSolver",
    "ChessboardCalibrator",
    "FrameCollector",
    "IntrinsicsCalibrator",
    "OpenCVCalibrationSolver",
    "SolverOutput",
    "board_world_points",
    "load_calibration",
]
