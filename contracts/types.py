"""Core data contracts for capture, collection, and calibration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Frame:
    camera_id: str
    frame_index: int
    t_capture_monotonic_ns: int
    image: Any
    width: int
    height: int
    pixfmt: str


@dataclass(frozen=True)
class TargetGeometry:
    """Chessboard inner-corner grid and the physical edge length of one square."""

    corner_grid: Tuple[int, int]
    square_size: float

    def __post_init__(self) -> None:
        width, height = self.corner_grid
        if width < 2 or height < 2:
            raise ValueError(f"Corner grid must be at least 2x2, got {width}x{height}")
        if not self.square_size > 0:
            raise ValueError(f"Square size must be positive, got {self.square_size}")

    @property
    def corner_count(self) -> int:
        return self.corner_grid[0] * self.corner_grid[1]


class OperatorDecision(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    FINISH = "finish"  # Stop collecting and calibrate with what was accepted


class StopReason(Enum):
    TARGET_REACHED = "target_reached"
    OPERATOR_FINISHED = "operator_finished"
    OPERATOR_CANCELLED = "operator_cancelled"
    DEVICE_FAILED = "device_failed"


@dataclass
class AcceptedFrameSet:
    """Frames accepted by the operator, in acceptance order."""

    target_count: int
    frames: List[Frame] = field(default_factory=list)
    stop_reason: Optional[StopReason] = None
    device_error: Optional[Exception] = None

    def add(self, frame: Frame) -> None:
        if len(self.frames) >= self.target_count:
            raise ValueError(f"Frame set already holds {self.target_count} frames")
        self.frames.append(frame)

    @property
    def is_full(self) -> bool:
        return len(self.frames) >= self.target_count

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)


@dataclass(frozen=True)
class CalibrationResult:
    camera_matrix: Any
    distortion_coefficients: Tuple[float, ...]
    reprojection_error: float
    image_size: Tuple[int, int] = (0, 0)
    frames_used: int = 0
    frames_dropped: int = 0
    per_frame_errors: Tuple[float, ...] = ()

    @property
    def focal_length_px(self) -> Tuple[float, float]:
        return float(self.camera_matrix[0][0]), float(self.camera_matrix[1][1])

    @property
    def principal_point_px(self) -> Tuple[float, float]:
        return float(self.camera_matrix[0][2]), float(self.camera_matrix[1][2])
