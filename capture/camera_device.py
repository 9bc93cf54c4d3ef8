"""Camera abstraction for calibration capture backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from contracts import Frame
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CameraStats:
    fps_avg: float
    fps_instant: float
    frames_read: int
    dropped_frames: int


class CameraDevice(ABC):
    @abstractmethod
    def open(self, serial: str) -> None:
        """Open a camera by index or serial; raise DeviceUnavailableError on failure."""

    @abstractmethod
    def set_mode(self, width: Optional[int], height: Optional[int], fps: Optional[int]) -> None:
        """Request a capture resolution and frame rate (None keeps the device default)."""

    @abstractmethod
    def read_frame(self, timeout_ms: int) -> Frame:
        """Read a frame or raise DeviceReadError."""

    @abstractmethod
    def get_stats(self) -> CameraStats:
        """Return capture diagnostics."""

    @abstractmethod
    def close(self) -> None:
        """Close the camera."""


@contextmanager
def camera_session(device: CameraDevice, serial: str) -> Iterator[CameraDevice]:
    """Open ``device`` for the duration of a block and close it exactly once.

    A device that fails to open is not closed.
    """
    device.open(serial)
    try:
        yield device
    finally:
        logger.debug(f"Releasing camera {serial}")
        device.close()
