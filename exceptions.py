"""Custom exception classes for the intrinsic calibrator."""

from __future__ import annotations

from typing import Optional


class CalibratorError(Exception):
    """Base exception for all calibrator errors."""

    pass


class DeviceError(CalibratorError):
    """Base exception for capture device errors."""

    def __init__(self, message: str, camera_id: Optional[str] = None):
        self.camera_id = camera_id
        super().__init__(message)


class DeviceUnavailableError(DeviceError):
    """Raised when the capture device cannot be opened."""

    pass


class DeviceReadError(DeviceError):
    """Raised when the device cannot produce a frame (end of stream or fault)."""

    pass


class CalibrationError(CalibratorError):
    """Base exception for calibration errors."""

    pass


class InsufficientFramesError(CalibrationError):
    """Raised when too few frames are available to calibrate."""

    def __init__(self, available: int, required: int, dropped: int = 0):
        self.available = available
        self.required = required
        self.dropped = dropped
        message = f"Need at least {required} frames to calibrate, have {available}"
        if dropped:
            message += f" ({dropped} dropped during corner refinement)"
        super().__init__(message)


class CornerRefinementError(CalibrationError):
    """Raised when subpixel corner refinement fails for a frame."""

    pass


class CalibrationSolverError(CalibrationError):
    """Raised when the calibration solver fails or returns unusable output."""

    pass


class ConfigError(CalibratorError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class OutputError(CalibratorError):
    """Base exception for result persistence errors."""

    pass


class FileWriteError(OutputError):
    """Raised when file write operation fails."""

    pass


class CalibrationFileError(OutputError):
    """Raised when a saved calibration file cannot be read."""

    pass
