"""Simulated camera backend for pipeline testing."""

from __future__ import annotations

import time
from typing import Optional, Sequence

import numpy as np

from contracts import Frame
from exceptions import DeviceReadError, DeviceUnavailableError

from .camera_device import CameraDevice, CameraStats


class SimulatedCamera(CameraDevice):
    """Replays a fixed sequence of images, then reports end of stream.

    With ``loop=True`` the sequence repeats forever instead.
    """

    def __init__(
        self,
        images: Sequence[np.ndarray],
        loop: bool = False,
        fail_open: bool = False,
    ) -> None:
        self._images = list(images)
        self._loop = loop
        self._fail_open = fail_open
        self._serial: Optional[str] = None
        self._position = 0
        self._frame_index = 0
        self.open_count = 0
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return self._serial is not None

    def open(self, serial: str) -> None:
        if self._fail_open:
            raise DeviceUnavailableError(f"Simulated camera {serial} unavailable", camera_id=str(serial))
        self._serial = str(serial)
        self._position = 0
        self.open_count += 1

    def set_mode(self, width: Optional[int], height: Optional[int], fps: Optional[int]) -> None:
        return None

    def read_frame(self, timeout_ms: int) -> Frame:
        if self._serial is None:
            raise RuntimeError("Camera not opened.")
        if self._position >= len(self._images):
            if not self._loop or not self._images:
                raise DeviceReadError("Simulated camera: end of stream", camera_id=self._serial)
            self._position = 0

        image = self._images[self._position]
        self._position += 1
        self._frame_index += 1
        return Frame(
            camera_id=self._serial,
            frame_index=self._frame_index,
            t_capture_monotonic_ns=time.monotonic_ns(),
            image=image,
            width=image.shape[1],
            height=image.shape[0],
            pixfmt="GRAY8" if image.ndim == 2 else "BGR24",
        )

    def get_stats(self) -> CameraStats:
        return CameraStats(
            fps_avg=0.0,
            fps_instant=0.0,
            frames_read=self._frame_index,
            dropped_frames=0,
        )

    def close(self) -> None:
        self.close_count += 1
        self._serial = None
