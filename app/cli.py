"""Interactive command-line entry point for intrinsic camera calibration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Tuple

from calib.calibrator import ChessboardCalibrator
from calib.collector import FrameCollector
from calib.export import CalibrationExporter
from calib.quality import rate_calibration_quality
from calib.solver import OpenCVCalibrationSolver
from capture.camera_device import CameraDevice
from capture.opencv_backend import OpenCVCamera
from configs.settings import DEFAULT_CONFIG_PATH, AppConfig, load_config
from contracts import CalibrationResult, TargetGeometry
from detect.chessboard import ChessboardDetector, CornerLocator, SubpixelRefiner
from exceptions import ConfigError, DeviceUnavailableError, OutputError
from log_config.logger import configure_logging, get_logger
from ui.operator_input import DecisionSource, KeyboardDecisionSource
from ui.preview import FramePresenter, OpenCVPresenter

from .pipeline import CalibrationPipeline, PipelineContext, PipelineOutcome, PipelineState

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DEVICE_UNAVAILABLE = 1
EXIT_CALIBRATION_FAILED = 2
EXIT_CONFIG_OR_OUTPUT_ERROR = 3

InputFn = Callable[[str], str]


def _ask(input_fn: InputFn, label: str, default) -> str:
    return input_fn(f"{label} [{default}]: ").strip()


def prompt_float(input_fn: InputFn, label: str, default: float) -> float:
    """Ask for a strictly positive number; empty input keeps ``default``."""
    while True:
        raw = _ask(input_fn, label, default)
        if not raw:
            return float(default)
        try:
            value = float(raw)
        except ValueError:
            print(f"  '{raw}' is not a number")
            continue
        if value > 0:
            return value
        print("  Value must be greater than zero")


def prompt_int(input_fn: InputFn, label: str, default: int, minimum: int) -> int:
    """Ask for an integer of at least ``minimum``; empty input keeps ``default``."""
    while True:
        raw = _ask(input_fn, label, default)
        if not raw:
            return int(default)
        try:
            value = int(raw)
        except ValueError:
            print(f"  '{raw}' is not a whole number")
            continue
        if value >= minimum:
            return value
        print(f"  Value must be at least {minimum}")


def prompt_session(config: AppConfig, input_fn: InputFn = input) -> Tuple[TargetGeometry, int]:
    """Ask the operator for board geometry and how many frames to collect."""
    square_size = prompt_float(input_fn, "Square size (edge length of one square)", config.board.square_size)
    width = prompt_int(input_fn, "Board width (inner corners per row)", config.board.cols, minimum=2)
    height = prompt_int(input_fn, "Board height (inner corners per column)", config.board.rows, minimum=2)
    target = prompt_int(
        input_fn,
        "Number of frames to collect",
        max(config.collection.target_frames, config.collection.min_frames),
        minimum=config.collection.min_frames,
    )
    return TargetGeometry(corner_grid=(width, height), square_size=square_size), target


def build_pipeline(
    config: AppConfig,
    geometry: TargetGeometry,
    target_count: int,
    device: Optional[CameraDevice] = None,
    presenter: Optional[FramePresenter] = None,
    decisions: Optional[DecisionSource] = None,
) -> CalibrationPipeline:
    device = device or OpenCVCamera(
        open_timeout_s=config.camera.open_timeout_s,
        open_attempts=config.camera.open_attempts,
    )
    presenter = presenter or OpenCVPresenter(config.display.window_name)
    decisions = decisions or KeyboardDecisionSource(poll_ms=config.display.poll_ms)

    collector = FrameCollector(
        detector=ChessboardDetector(config.detection, fast_check=True),
        presenter=presenter,
        decisions=decisions,
        read_timeout_ms=config.camera.read_timeout_ms,
    )
    calibrator = ChessboardCalibrator(
        locator=CornerLocator(
            ChessboardDetector(config.detection, fast_check=False),
            SubpixelRefiner(config.refinement),
        ),
        solver=OpenCVCalibrationSolver(config.solver),
        min_frames=config.collection.min_frames,
    )
    context = PipelineContext(
        geometry=geometry,
        target_count=target_count,
        camera_serial=str(config.camera.index),
        device=device,
        collector=collector,
        calibrator=calibrator,
        exporter=CalibrationExporter(config.output),
        presenter=presenter,
        decisions=decisions,
        capture_mode=(config.camera.width, config.camera.height, config.camera.fps),
        read_timeout_ms=config.camera.read_timeout_ms,
        show_undistorted=config.display.show_undistorted,
    )
    return CalibrationPipeline(context)


def print_result(result: CalibrationResult) -> None:
    fx, fy = result.focal_length_px
    cx, cy = result.principal_point_px
    quality = rate_calibration_quality(result.reprojection_error, result.frames_used)
    print("\nCalibration complete")
    print(f"  frames used:        {result.frames_used} ({result.frames_dropped} dropped)")
    print(f"  focal length (px):  fx={fx:.3f} fy={fy:.3f}")
    print(f"  principal point:    cx={cx:.3f} cy={cy:.3f}")
    print(f"  distortion:         {' '.join(f'{v:.6f}' for v in result.distortion_coefficients)}")
    print(f"  reprojection error: {result.reprojection_error:.4f} px")
    print(f"\nQuality: {quality['rating']} - {quality['description']}")
    for rec in quality["recommendations"]:
        print(f"  - {rec}")


def exit_code_for(outcome: PipelineOutcome) -> int:
    if outcome.state in (PipelineState.DONE, PipelineState.CANCELLED):
        return EXIT_OK
    if isinstance(outcome.error, DeviceUnavailableError):
        return EXIT_DEVICE_UNAVAILABLE
    if isinstance(outcome.error, OutputError):
        return EXIT_CONFIG_OR_OUTPUT_ERROR
    return EXIT_CALIBRATION_FAILED


def main(config_path: Path = DEFAULT_CONFIG_PATH, input_fn: InputFn = input) -> int:
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return EXIT_CONFIG_OR_OUTPUT_ERROR

    configure_logging(config.logging.level, config.logging.log_dir)

    print("Intrinsic camera calibration")
    print("Press Enter to keep the value in brackets.\n")
    try:
        geometry, target_count = prompt_session(config, input_fn)
    except (EOFError, KeyboardInterrupt):
        print("\nCancelled")
        return EXIT_OK

    print(
        f"\nShow the {geometry.corner_grid[0]}x{geometry.corner_grid[1]} board to the camera. "
        "SPACE accepts a detected board, any other key rejects it, "
        "ENTER calibrates early, ESC quits.\n"
    )
    try:
        outcome = build_pipeline(config, geometry, target_count).run()
    except KeyboardInterrupt:
        print("\nCancelled")
        return EXIT_OK

    if outcome.state is PipelineState.DONE:
        print_result(outcome.result)
        for name, path in outcome.written.items():
            print(f"  saved {name}: {path}")
    elif outcome.state is PipelineState.CANCELLED:
        print(f"Cancelled; {outcome.frames_accepted} collected frames discarded")
    else:
        print(f"Failed during {outcome.stage}: {outcome.error}")

    return exit_code_for(outcome)


if __name__ == "__main__":
    raise SystemExit(main())
