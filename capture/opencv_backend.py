"""OpenCV-based camera backend."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import cv2

from contracts import Frame
from exceptions import DeviceReadError, DeviceUnavailableError
from log_config.logger import get_logger

from .camera_device import CameraDevice, CameraStats
from .timeout_utils import RetryPolicy, call_with_retry, run_with_timeout

logger = get_logger(__name__)


@dataclass
class _Stats:
    last_frame_ns: int = 0
    frames: int = 0
    dropped: int = 0
    fps_avg: float = 0.0
    fps_instant: float = 0.0


class OpenCVCamera(CameraDevice):
    def __init__(
        self,
        api_preference: int = cv2.CAP_ANY,
        open_timeout_s: float = 5.0,
        open_attempts: int = 3,
    ) -> None:
        self._serial: Optional[str] = None
        self._capture: Optional[cv2.VideoCapture] = None
        self._stats = _Stats()
        self._api_preference = api_preference
        self._open_timeout_s = open_timeout_s
        self._retry_policy = RetryPolicy(
            max_attempts=open_attempts,
            base_delay=0.5,
            max_delay=2.0,
            retry_on=(DeviceUnavailableError,),
        )

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self, serial: str) -> None:
        """Open camera by index.

        Args:
            serial: Camera index as string or int (e.g., "0", 1)

        Raises:
            DeviceUnavailableError: If the index is invalid or the camera
                cannot be opened after all retry attempts
        """
        serial_str = str(serial)
        self._serial = serial_str
        logger.info(f"Opening OpenCV camera index {serial_str}")

        if not serial_str.isdigit():
            logger.error(f"Invalid camera index: {serial_str}")
            raise DeviceUnavailableError(
                f"OpenCVCamera only supports index-based devices, got {serial_str!r}",
                camera_id=serial_str,
            )

        index = int(serial_str)

        def _open_camera() -> cv2.VideoCapture:
            capture = cv2.VideoCapture(index, self._api_preference)
            if not capture.isOpened():
                capture.release()
                raise DeviceUnavailableError(
                    f"Failed to open camera index {index} - camera may be in use or not found",
                    camera_id=serial_str,
                )
            return capture

        def _open_with_timeout() -> cv2.VideoCapture:
            return run_with_timeout(
                _open_camera,
                timeout_seconds=self._open_timeout_s,
                error_message=f"OpenCV camera {index} open timed out",
                on_late_result=lambda capture: capture.release(),
            )

        try:
            self._capture = call_with_retry(_open_with_timeout, self._retry_policy)
        except DeviceUnavailableError as e:
            logger.error(f"Failed to open OpenCV camera index {serial_str}: {e}")
            self._capture = None
            raise
        except cv2.error as e:
            logger.error(f"OpenCV error opening camera index {serial_str}: {e}")
            self._capture = None
            raise DeviceUnavailableError(f"OpenCV error opening camera {index}: {e}", camera_id=serial_str)

        self._stats = _Stats()
        logger.info(f"Successfully opened OpenCV camera index {serial_str}")

    def set_mode(self, width: Optional[int], height: Optional[int], fps: Optional[int]) -> None:
        """Request capture resolution and frame rate.

        Drivers may silently ignore the request; the applied values are
        logged when they differ.

        Raises:
            RuntimeError: If camera not opened
        """
        if self._capture is None:
            logger.error(f"Cannot set_mode on camera {self._serial}: not opened")
            raise RuntimeError("Camera not opened.")

        if width:
            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if fps:
            self._capture.set(cv2.CAP_PROP_FPS, fps)

        actual_width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if (width and actual_width != width) or (height and actual_height != height):
            logger.warning(
                f"Camera {self._serial}: Requested {width}x{height} but got {actual_width}x{actual_height}"
            )
        else:
            logger.info(f"Camera {self._serial}: Capturing at {actual_width}x{actual_height}")

    def read_frame(self, timeout_ms: int) -> Frame:
        if self._capture is None:
            raise RuntimeError("Camera not opened.")
        ok, image = self._capture.read()
        if not ok or image is None or image.size == 0:
            self._stats.dropped += 1
            raise DeviceReadError(
                f"Camera {self._serial}: failed to read frame (end of stream or device fault)",
                camera_id=self._serial,
            )

        now_ns = time.monotonic_ns()
        if self._stats.last_frame_ns:
            delta_s = (now_ns - self._stats.last_frame_ns) / 1e9
            if delta_s > 0:
                self._stats.fps_instant = 1.0 / delta_s
                self._stats.fps_avg = (
                    (self._stats.fps_avg * self._stats.frames) + self._stats.fps_instant
                ) / (self._stats.frames + 1)
        self._stats.frames += 1
        self._stats.last_frame_ns = now_ns
        return Frame(
            camera_id=self._serial or "0",
            frame_index=self._stats.frames,
            t_capture_monotonic_ns=now_ns,
            image=image,
            width=image.shape[1],
            height=image.shape[0],
            pixfmt="GRAY8" if image.ndim == 2 else "BGR24",
        )

    def get_stats(self) -> CameraStats:
        return CameraStats(
            fps_avg=self._stats.fps_avg,
            fps_instant=self._stats.fps_instant,
            frames_read=self._stats.frames,
            dropped_frames=self._stats.dropped,
        )

    def close(self) -> None:
        """Close camera and release resources. Safe to call more than once."""
        if self._capture is None:
            logger.debug(f"Camera {self._serial}: Already closed")
            return

        logger.info(f"Camera {self._serial}: Closing after {self._stats.frames} frames")
        try:
            self._capture.release()
        except cv2.error as e:
            logger.error(f"Camera {self._serial}: Error during close: {e}")
        finally:
            self._capture = None
