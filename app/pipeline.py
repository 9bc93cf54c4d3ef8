"""Calibration pipeline wiring capture, frame collection, calibration, and export."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from calib.calibrator import IntrinsicsCalibrator
from calib.collector import FrameCollector
from calib.export import CalibrationExporter
from capture.camera_device import CameraDevice, camera_session
from contracts import AcceptedFrameSet, CalibrationResult, StopReason, TargetGeometry
from exceptions import (
    CalibrationError,
    DeviceReadError,
    DeviceUnavailableError,
    InsufficientFramesError,
    OutputError,
)
from log_config.logger import get_logger
from rectify.undistorter import Undistorter
from ui.operator_input import DecisionSource
from ui.preview import FramePresenter

logger = get_logger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    COLLECTED_ENOUGH = "collected_enough"
    DEVICE_FAILED = "device_failed"
    CANCELLED = "cancelled"
    CALIBRATING = "calibrating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineContext:
    """Everything one calibration run needs, built fresh for every run."""

    geometry: TargetGeometry
    target_count: int
    camera_serial: str
    device: CameraDevice
    collector: FrameCollector
    calibrator: IntrinsicsCalibrator
    exporter: Optional[CalibrationExporter]
    presenter: FramePresenter
    decisions: DecisionSource
    capture_mode: Tuple[Optional[int], Optional[int], Optional[int]] = (None, None, None)
    read_timeout_ms: int = 1000
    show_undistorted: bool = False
    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(default_factory=list)

    def transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


@dataclass(frozen=True)
class PipelineOutcome:
    state: PipelineState
    result: Optional[CalibrationResult] = None
    error: Optional[Exception] = None
    stage: Optional[str] = None
    frames_accepted: int = 0
    written: Dict[str, Path] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE


class CalibrationPipeline:
    """Runs collection then calibration once against an exclusively held device.

    The device is opened at the start of ``run`` and closed exactly once on
    every exit path. Failures are returned as a FAILED outcome naming the
    stage; the context ends back in IDLE.
    """

    def __init__(self, context: PipelineContext) -> None:
        self._ctx = context

    @property
    def context(self) -> PipelineContext:
        return self._ctx

    def run(self) -> PipelineOutcome:
        ctx = self._ctx
        if ctx.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline must start from idle, not {ctx.state.value}")

        try:
            with camera_session(ctx.device, ctx.camera_serial) as device:
                device.set_mode(*ctx.capture_mode)
                return self._run_session(device)
        except DeviceUnavailableError as e:
            return self._fail("device", e)
        except KeyboardInterrupt:
            logger.warning("Calibration run interrupted")
            self._abandon(PipelineState.CANCELLED)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during calibration run: {e}")
            self._abandon(PipelineState.FAILED)
            raise
        finally:
            ctx.presenter.close()

    def _abandon(self, state: PipelineState) -> None:
        if self._ctx.state is not PipelineState.IDLE:
            self._ctx.transition(state)
            self._ctx.transition(PipelineState.IDLE)

    def _run_session(self, device: CameraDevice) -> PipelineOutcome:
        ctx = self._ctx
        ctx.transition(PipelineState.COLLECTING)
        frames = ctx.collector.collect(device, ctx.geometry, ctx.target_count)

        if frames.stop_reason is StopReason.OPERATOR_CANCELLED:
            ctx.transition(PipelineState.CANCELLED)
            ctx.transition(PipelineState.IDLE)
            return PipelineOutcome(
                state=PipelineState.CANCELLED,
                stage="collection",
                frames_accepted=len(frames),
            )

        device_failed = frames.stop_reason is StopReason.DEVICE_FAILED
        ctx.transition(PipelineState.DEVICE_FAILED if device_failed else PipelineState.COLLECTED_ENOUGH)

        ctx.transition(PipelineState.CALIBRATING)
        try:
            result = ctx.calibrator.calibrate(frames, ctx.geometry)
        except InsufficientFramesError as e:
            # Too few frames because the device died reads better as a capture failure
            if device_failed and frames.device_error is not None:
                return self._fail("collection", frames.device_error, frames)
            return self._fail("calibration", e, frames)
        except CalibrationError as e:
            return self._fail("calibration", e, frames)

        written: Dict[str, Path] = {}
        if ctx.exporter is not None:
            try:
                written = ctx.exporter.export(result, ctx.geometry)
            except OutputError as e:
                return self._fail("export", e, frames)

        ctx.transition(PipelineState.DONE)
        if ctx.show_undistorted and not device_failed:
            self._preview_undistorted(device, result)

        return PipelineOutcome(
            state=PipelineState.DONE,
            result=result,
            stage="export" if written else "calibration",
            frames_accepted=len(frames),
            written=written,
        )

    def _preview_undistorted(self, device: CameraDevice, result: CalibrationResult) -> None:
        ctx = self._ctx
        undistorter = Undistorter.from_result(result)
        logger.info("Showing undistorted preview (press any key to close)")
        while True:
            try:
                frame = device.read_frame(ctx.read_timeout_ms)
            except DeviceReadError as e:
                logger.warning(f"Undistorted preview stopped: {e}")
                return
            ctx.presenter.show_image(undistorter.undistort(frame.image), "undistorted")
            if ctx.decisions.key_pressed():
                return

    def _fail(
        self,
        stage: str,
        error: Exception,
        frames: Optional[AcceptedFrameSet] = None,
    ) -> PipelineOutcome:
        ctx = self._ctx
        logger.error(f"Calibration run failed during {stage}: {error}")
        ctx.transition(PipelineState.FAILED)
        ctx.transition(PipelineState.IDLE)
        return PipelineOutcome(
            state=PipelineState.FAILED,
            error=error,
            stage=stage,
            frames_accepted=len(frames) if frames is not None else 0,
        )
