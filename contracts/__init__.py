"""Shared data contracts for intrinsic calibration."""

from .types import (
    AcceptedFrameSet,
    CalibrationResult,
    Frame,
    OperatorDecision,
    StopReason,
    TargetGeometry,
)

__all__ = [
    "AcceptedFrameSet",
    "CalibrationResult",
    "Frame",
    "OperatorDecision",
    "StopReason",
    "TargetGeometry",
]
