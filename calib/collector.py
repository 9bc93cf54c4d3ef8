"""Operator-driven collection of chessboard frames from a live device."""

from __future__ import annotations

from dataclasses import replace

from capture.camera_device import CameraDevice
from contracts import AcceptedFrameSet, Frame, OperatorDecision, StopReason, TargetGeometry
from detect.chessboard import ChessboardDetector
from detect.utils import compute_focus_score
from exceptions import DeviceReadError
from log_config.logger import get_logger
from ui.operator_input import DecisionSource
from ui.preview import FramePresenter

logger = get_logger(__name__)

# Variance-of-Laplacian below this usually means motion blur or bad focus
BLUR_WARNING_SCORE = 50.0


class FrameCollector:
    """Shows live frames and keeps the ones the operator accepts.

    Only frames where the board was detected are offered for acceptance,
    and only the raw image is kept; corners are located again at
    calibration time. The loop is synchronous, so frames captured while the
    operator is deciding are never seen.
    """

    def __init__(
        self,
        detector: ChessboardDetector,
        presenter: FramePresenter,
        decisions: DecisionSource,
        read_timeout_ms: int = 1000,
    ) -> None:
        self._detector = detector
        self._presenter = presenter
        self._decisions = decisions
        self._read_timeout_ms = read_timeout_ms

    def collect(
        self,
        device: CameraDevice,
        target_geometry: TargetGeometry,
        target_count: int,
    ) -> AcceptedFrameSet:
        if target_count < 1:
            raise ValueError(f"target_count must be positive, got {target_count}")

        accepted = AcceptedFrameSet(target_count=target_count)
        grid = target_geometry.corner_grid
        logger.info(f"Collecting {target_count} frames of a {grid[0]}x{grid[1]} board")

        while not accepted.is_full:
            try:
                frame = device.read_frame(self._read_timeout_ms)
            except DeviceReadError as e:
                logger.error(f"Device read failed after {len(accepted)} accepted frames: {e}")
                accepted.stop_reason = StopReason.DEVICE_FAILED
                accepted.device_error = e
                return accepted

            detection = self._detector.detect(frame.image, grid)
            self._presenter.show(frame.image, detection, grid, len(accepted), target_count)
            decision = self._decisions.next_decision(block=detection.found)

            if decision is OperatorDecision.CANCEL:
                logger.info(f"Collection cancelled by operator ({len(accepted)} frames discarded)")
                accepted.stop_reason = StopReason.OPERATOR_CANCELLED
                return accepted
            if decision is OperatorDecision.FINISH:
                logger.info(f"Operator finished collection with {len(accepted)} frames")
                accepted.stop_reason = StopReason.OPERATOR_FINISHED
                return accepted

            if not detection.found:
                continue
            if decision is OperatorDecision.ACCEPT:
                accepted.add(self._snapshot(frame))
                logger.info(f"Accepted frame {len(accepted)}/{target_count}")
            else:
                logger.debug(f"Rejected frame {frame.frame_index}")

        logger.info(f"Collected all {target_count} frames")
        accepted.stop_reason = StopReason.TARGET_REACHED
        return accepted

    @staticmethod
    def _snapshot(frame: Frame) -> Frame:
        focus = compute_focus_score(frame.image)
        if focus < BLUR_WARNING_SCORE:
            logger.warning(f"Frame {frame.frame_index} looks blurry (focus score {focus:.1f})")
        return replace(frame, image=frame.image.copy())
